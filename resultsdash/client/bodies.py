"""Request body variants.

The variant decides header handling: `JsonBody` is serialized and sent as
`application/json`; `MultipartBody` is handed to `requests` untouched so it can write
the multipart boundary into `Content-Type` itself.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import IO, Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel

from resultsdash.client.errors import InvalidRequestError


@dataclass(frozen=True)
class JsonBody:
    payload: Any

    @classmethod
    def from_model(cls, model: BaseModel) -> "JsonBody":
        # Wire format is camelCase; unset optional fields are left out so partial updates stay partial.
        return cls(model.model_dump(mode="json", by_alias=True, exclude_unset=True))

    def encode(self) -> str:
        try:
            return json.dumps(self.payload)
        except (TypeError, ValueError) as e:
            raise InvalidRequestError("Invalid request body provided.") from e


@dataclass(frozen=True)
class FilePart:
    filename: str
    content: Union[bytes, IO[bytes]]
    content_type: Optional[str] = None

    def as_requests_tuple(self) -> Tuple[Any, ...]:
        if self.content_type:
            return (self.filename, self.content, self.content_type)
        return (self.filename, self.content)


@dataclass(frozen=True)
class MultipartBody:
    fields: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, FilePart] = field(default_factory=dict)

    def requests_kwargs(self) -> Dict[str, Any]:
        return {
            "data": dict(self.fields),
            "files": {name: part.as_requests_tuple() for name, part in self.files.items()},
        }


RequestBody = Union[JsonBody, MultipartBody]
