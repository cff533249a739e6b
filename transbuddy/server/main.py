from __future__ import annotations

import argparse

from dotenv import load_dotenv

from transbuddy.app.config import load_server_config
from transbuddy.app.logging_setup import setup_app_logger
from transbuddy.nlp.translator.errors import UnsupportedConfigurationError
from transbuddy.server.app import create_app


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    try:
        config = load_server_config()
    except UnsupportedConfigurationError as e:
        raise SystemExit(str(e)) from e

    p = argparse.ArgumentParser(prog="transbuddy-server", description="Translation HTTP API")
    p.add_argument("--host", default=config.host, help="bind address (HOST)")
    p.add_argument("--port", type=int, default=config.port, help="listen port (PORT)")
    p.add_argument("--debug", action="store_true", help="run Flask in debug mode")
    args = p.parse_args(argv)

    logger, _log_dir, log_path = setup_app_logger("transbuddy.server", console=True)
    app = create_app(config, logger=logger)

    logger.info(
        "server_start",
        extra={
            "provider": config.provider.provider.value,
            "host": args.host,
            "port": args.port,
            "cors_origin": config.cors_origin,
            "log_path": str(log_path),
        },
    )
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
