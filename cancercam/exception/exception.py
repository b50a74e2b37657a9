# cancercam/exception/exception.py

import sys
from types import ModuleType
from typing import Optional


class CustomException(Exception):
    """
    Base error for the classification pipeline.

    Each subclass names the pipeline stage that failed, the HTTP status the
    transport layer answers with, and the message shown to the caller. The
    underlying error text stays server-side (logs only).

    Passing ``sys`` as ``error_details`` inside an ``except`` block records
    the file and line where the original error was raised.
    """

    stage: str = "pipeline"
    status_code: int = 500
    public_message: str = "Classification failed"

    def __init__(self, error_message, error_details: Optional[ModuleType] = None):
        super().__init__(str(error_message))
        self.error_message = str(error_message)
        self.file_name = None
        self.lineno = None

        if error_details is not None:
            _, _, exc_tb = error_details.exc_info()
            if exc_tb is not None:
                while exc_tb.tb_next is not None:
                    exc_tb = exc_tb.tb_next
                self.file_name = exc_tb.tb_frame.f_code.co_filename
                self.lineno = exc_tb.tb_lineno

    def __str__(self) -> str:
        if self.file_name is None:
            return f"[{self.stage}] {self.error_message}"
        return (
            f"[{self.stage}] Error occurred in python script [{self.file_name}] "
            f"line number [{self.lineno}] error message [{self.error_message}]"
        )


class NotReadyError(CustomException):
    stage = "model_registry"
    status_code = 503
    public_message = "Model not loaded"


class MissingInputError(CustomException):
    stage = "request"
    status_code = 400
    public_message = "No image provided"


class DecodeError(CustomException):
    stage = "decode"
    status_code = 400
    public_message = "Invalid image"


class ShapeMismatchError(CustomException):
    stage = "preprocess"


class InferenceError(CustomException):
    stage = "inference"


class RenderError(CustomException):
    stage = "render"


class PersistenceError(CustomException):
    stage = "persist"


class ClassificationTimeoutError(CustomException):
    stage = "timeout"
    status_code = 504
    public_message = "Classification timed out"


def wrap_stage_error(error: Exception, error_type: type) -> CustomException:
    """Keep typed pipeline errors as-is, wrap anything else into ``error_type``."""
    if isinstance(error, CustomException):
        return error
    return error_type(error, sys)
