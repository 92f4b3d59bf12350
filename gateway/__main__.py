"""Run the gateway with uvicorn on the configured port."""

import uvicorn

from gateway.config import Settings, load_environment_from_dotenv


def main() -> None:
    load_environment_from_dotenv(".env")
    settings = Settings.from_env()
    uvicorn.run(
        "gateway.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.gateway_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
