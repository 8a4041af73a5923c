from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from tyjson.errors import ContentFormat


class RequestContext(BaseModel):
    """Typed view of one inbound API call. Frozen once built."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str = "/"
    path_segments: Tuple[str, ...] = ()
    content_format: ContentFormat = ContentFormat.HTML
    page_size: int = 10
    current_page: int = 1
    excerpt_length: int = 200
    query: Dict[str, str] = {}
    authorization: Optional[str] = None
    origin: Optional[str] = None
    client_ip: str = ""
    user_agent: str = ""

    @property
    def endpoint(self) -> str:
        return self.path_segments[0] if self.path_segments else ""

    def segment(self, index: int) -> Optional[str]:
        if index < len(self.path_segments):
            return self.path_segments[index]
        return None

    def get_query(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.query.get(key, default)


class RequestBody(BaseModel):
    """POST payload: the decoded JSON document, else the submitted form."""

    json_data: Any = None
    form: Dict[str, Any] = {}

    def as_mapping(self) -> Optional[Dict[str, Any]]:
        if isinstance(self.json_data, dict):
            return self.json_data
        if self.form:
            return dict(self.form)
        return None

    def get(self, key: str, default: Any = None) -> Any:
        data = self.as_mapping() or {}
        return data.get(key, default)
