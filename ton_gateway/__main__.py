"""Entry point: ``python -m ton_gateway``."""

import uvicorn

from ton_gateway.config import default_config


def main() -> None:
    uvicorn.run("ton_gateway.server:app", host="0.0.0.0", port=default_config.port)


if __name__ == "__main__":
    main()
