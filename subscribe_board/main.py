import logging

import uvicorn

from .core.config import load_env_config
from .utils.logging_config import setup_logging


def main() -> None:
    env = load_env_config()
    setup_logging(log_file_prefix="subscribe_board", log_dir=env.LOG_DIR, log_level=env.LOG_LEVEL)
    logging.info("starting subscribe board on %s:%d", env.HOST, env.PORT)

    # log_config=None keeps the root handlers installed above
    uvicorn.run("subscribe_board.api_server:app", host=env.HOST, port=env.PORT, log_config=None)


if __name__ == "__main__":
    main()
