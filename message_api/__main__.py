import uvicorn

from message_api.config import get_settings
from message_api.main import create_app


def main() -> None:
    settings = get_settings()
    # log_config=None keeps the JSON handlers installed by create_app
    uvicorn.run(create_app(settings=settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
