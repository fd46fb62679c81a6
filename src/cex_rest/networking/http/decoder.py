"""
Response Decoder

Turns a raw transport response into the operation's declared payload type
or raises a structured error. Non-2xx bodies shaped like ``{code, msg}``
(or ``{code, message}``) become BusinessError; anything else becomes
HttpStatusError.
"""

from typing import Any, Optional

import msgspec

from cex_rest.exceptions import BusinessError, DeserializationError, ExchangeRestError, HttpStatusError
from .strategies.exception_handler import ExceptionHandlerStrategy
from .structs import HttpResponse


class BusinessErrorPayload(msgspec.Struct):
    code: int
    msg: Optional[str] = None
    message: Optional[str] = None

    @property
    def text(self) -> str:
        return self.msg or self.message or ""


class ResponseDecoder:
    """Decodes success payloads with msgspec and classifies error responses."""

    def __init__(self, exception_handler: Optional[ExceptionHandlerStrategy] = None):
        self.exception_handler = exception_handler

    def decode(self, response: HttpResponse, response_type: Any = None) -> Any:
        if not response.ok:
            raise self.error_for(response)
        return self.decode_success(response.body, response_type, response.status)

    @staticmethod
    def decode_success(body: bytes, response_type: Any = None, status: int = 200) -> Any:
        if not body or not body.strip():
            return None
        try:
            if response_type is None:
                return msgspec.json.decode(body)
            return msgspec.json.decode(body, type=response_type)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            raise DeserializationError(f"Cannot decode response: {e}", body, status) from e

    def error_for(self, response: HttpResponse) -> ExchangeRestError:
        text = response.body.decode("utf-8", errors="replace")

        if self.exception_handler and self.exception_handler.should_handle_error(response.status, text):
            return self.exception_handler.handle_error(response.status, text)

        try:
            payload = msgspec.json.decode(response.body, type=BusinessErrorPayload)
        except (msgspec.DecodeError, msgspec.ValidationError):
            return HttpStatusError(response.status, text)
        return BusinessError(response.status, payload.code, payload.text)
