"""
Reply validation
Checks reply bodies against the expected content and reads Docker error envelopes
"""

import json
import logging
from typing import Any, NamedTuple, Tuple

from .exceptions import ErrorCode
from .request import ExpectedContent

logger = logging.getLogger(__name__)

INVALID_ERROR_JSON = ('An error occurred while performing the API request but the '
                      'returned JSON error data is not parseable.')
INVALID_ERROR_TYPE = ('An error occurred while performing the API request but the '
                      'returned JSON error data does not contain a JSON object.')
EMPTY_ERROR_MESSAGE = ('An error occurred while performing the API request but the '
                       'returned error message is empty.')


class OutputCheck(NamedTuple):
    """Outcome of check_output()"""
    payload: Any
    error: int = ErrorCode.NO_ERROR
    text: str = ''

    @property
    def ok(self) -> bool:
        return self.error == ErrorCode.NO_ERROR


def _parse(data: bytes) -> Any:
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"{e.msg} at offset {e.pos}") from e


def check_output(expected: ExpectedContent, data: bytes) -> OutputCheck:
    """
    Validate a successful reply body

    Args:
        expected: Content the operation declared
        data: Raw reply body

    Returns:
        OutputCheck with the parsed document on success, or the error code
        and detail text
    """
    if not expected.is_json:
        return OutputCheck(None)

    if not data:
        logger.critical('Invalid reply: content expected, but reply is empty.')
        return OutputCheck(None, ErrorCode.EMPTY_REPLY)

    try:
        document = _parse(data)
    except ValueError as e:
        logger.critical(f"Invalid JSON data in reply: {e}")
        return OutputCheck(None, ErrorCode.JSON_PARSE_ERROR, str(e))

    if document is None or (isinstance(document, (list, dict)) and not document):
        logger.critical('Invalid reply: content expected, but JSON document is empty.')
        return OutputCheck(None, ErrorCode.EMPTY_JSON)

    if expected == ExpectedContent.JSON_ARRAY and not isinstance(document, list):
        logger.critical('Invalid reply: JSON array expected, but got something different.')
        return OutputCheck(None, ErrorCode.WRONG_OUTPUT_TYPE)

    if expected == ExpectedContent.JSON_OBJECT and not isinstance(document, dict):
        logger.critical('Invalid reply: JSON object expected, but got something different.')
        return OutputCheck(None, ErrorCode.WRONG_OUTPUT_TYPE)

    return OutputCheck(document)


def extract_error(data: bytes) -> Tuple[str, bool]:
    """
    Read the message of a Docker error envelope ({"message": "..."})

    Args:
        data: Raw body of the failed reply

    Returns:
        Tuple of the message and whether it came from the envelope; if the
        envelope is not usable the message explains why
    """
    try:
        document = _parse(data)
    except ValueError as e:
        logger.critical(f"Invalid JSON data in error reply: {e}")
        return INVALID_ERROR_JSON, False

    if not isinstance(document, dict):
        logger.critical('Unexpected JSON type in error reply, expected an object.')
        return INVALID_ERROR_TYPE, False

    message = document.get('message')
    if not isinstance(message, str) or not message:
        logger.critical('The error message returned by the Docker API is empty.')
        return EMPTY_ERROR_MESSAGE, False

    logger.critical(f"The following error occurred while performing the API request: {message}")
    return message, True
