import logging
import time
import traceback
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tyjson.errors import ContentFormat, HttpCode
from tyjson.schemas.envelope import ResponseEnvelope

logger = logging.getLogger(__name__)


class ResponseWriter:
    """
    Builds the one response a request gets. The first ``send``/``error`` call
    terminates the writer; later calls hand back the response already built.
    """

    def __init__(
        self,
        content_format: ContentFormat = ContentFormat.HTML,
        *,
        origin: Optional[str] = None,
        allow_origin: str = "*",
        extra_headers: Optional[Dict[str, str]] = None,
        debug: bool = False,
    ):
        self.content_format = content_format
        self.origin = origin
        self.allow_origin = allow_origin
        self.extra_headers = extra_headers or {}
        self.debug = debug
        self._response: Optional[JSONResponse] = None

    @property
    def terminated(self) -> bool:
        return self._response is not None

    def headers(self) -> Dict[str, str]:
        headers = dict(self.extra_headers)
        headers.update(
            {
                "Access-Control-Allow-Origin": self.origin or self.allow_origin,
                "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
                "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
                "Access-Control-Allow-Credentials": "true",
                "Cache-Control": "no-cache, no-store, must-revalidate",
                "Pragma": "no-cache",
                "Expires": "0",
            }
        )
        return headers

    def send(
        self,
        data: Any = None,
        meta: Optional[Dict[str, Any]] = None,
        code: HttpCode = HttpCode.OK,
        message: Optional[str] = None,
        error_details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        if self._response is not None:
            logger.warning("Response already sent; ignoring second write")
            return self._response

        code = HttpCode(code)
        envelope = ResponseEnvelope(
            code=int(code),
            message="success" if code == HttpCode.OK else (message or "Error"),
            data=jsonable_encoder(data),
            meta={
                "format": self.content_format.value,
                "timestamp": int(time.time()),
                **(meta or {}),
            },
            error_details=error_details,
        )
        content = envelope.model_dump()
        if content["error_details"] is None:
            del content["error_details"]
        self._response = JSONResponse(
            status_code=int(code), content=content, headers=self.headers()
        )
        return self._response

    def error(
        self, message: str, code: HttpCode, exc: Optional[BaseException] = None
    ) -> JSONResponse:
        details = None
        if exc is not None and self.debug:
            details = {
                "message": str(exc),
                "trace": "".join(
                    traceback.format_exception(type(exc), exc, exc.__traceback__)
                ),
            }
        return self.send(code=code, message=message, error_details=details)
