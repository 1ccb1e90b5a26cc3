import logging


def setup_logging(level: str = "INFO") -> None:
    """Attach a console handler to the root logger unless one already exists."""
    logger = logging.getLogger()
    if logger.handlers:
        # Test runners and repeated create_app calls configure logging themselves.
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)


__all__ = ["setup_logging"]
