"""Run the counter with uvicorn: python -m garden_counter"""

from __future__ import annotations

import uvicorn

from garden_counter.config import load_config


def main() -> None:
    config = load_config()
    uvicorn.run(
        "garden_counter.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
