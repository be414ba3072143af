import logging
from typing import Any

logger = logging.getLogger("django_assembly")


# Level below DEBUG for the step-by-step trace of the composition pipeline
TRACE_LEVEL_NUM = 5
logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")


def trace(message: str, *args: Any, **kwargs: Any) -> None:
    """
    TRACE level logger.

    To display TRACE logs, set the logging level below 5.

    ```py
    LOGGING = {
        "version": 1,
        "handlers": {
            "console": {"class": "logging.StreamHandler"},
        },
        "loggers": {
            "django_assembly": {
                "level": 5,
                "handlers": ["console"],
            },
        },
    }
    ```
    """
    if logger.isEnabledFor(TRACE_LEVEL_NUM):
        logger.log(TRACE_LEVEL_NUM, message, *args, **kwargs)


def trace_document_msg(action: str, document_id: str, extra: str = "") -> None:
    """
    TRACE level logger with additional information about the composed document.

    Format:
    ```
    DOCUMENT root1 ASSETS_RELOCATED scripts=2 links=1
    ```
    """
    if not logger.isEnabledFor(TRACE_LEVEL_NUM):
        return
    msg = f"DOCUMENT {document_id} {action}"
    if extra:
        msg += f" {extra}"
    trace(msg)
