"""
Import inputs: a local file or a remote URL.

Inputs form a tagged union discriminated on ``kind``. Anything that is not
one of the two models is rejected by ``validate_inputs`` before an import
touches the warehouse.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Any, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field, model_validator

from core.exceptions import InvalidInputTypeError


class LocalFile(BaseModel):
    """A file supplied by the user, read from disk or already in memory."""
    kind: Literal["file"] = "file"
    name: str = Field(..., min_length=1, description="Original file name")
    path: Optional[Path] = None
    data: Optional[bytes] = None

    @model_validator(mode="after")
    def check_source(self):
        if (self.path is None) == (self.data is None):
            raise ValueError("exactly one of 'path' or 'data' must be set")
        return self

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "LocalFile":
        path = Path(path)
        return cls(name=path.name, path=path)

    async def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        return await asyncio.to_thread(self.path.read_bytes)


class RemoteSource(BaseModel):
    """A dataset to download; ``url`` may be http(s) or a ``data:`` URL."""
    kind: Literal["url"] = "url"
    url: str = Field(..., min_length=1)


ImportInput = Annotated[Union[LocalFile, RemoteSource], Field(discriminator="kind")]


def validate_inputs(inputs: Sequence[Any]) -> List[Union[LocalFile, RemoteSource]]:
    """Check every input's shape up front, raising on the first bad one."""
    for index, item in enumerate(inputs):
        if not isinstance(item, (LocalFile, RemoteSource)):
            raise InvalidInputTypeError(item, index=index)
    return list(inputs)


def input_from_argument(value: str) -> Union[LocalFile, RemoteSource]:
    """Build an input from a command-line argument: URLs are remote, anything else a path."""
    if value.startswith(("http://", "https://", "data:")):
        return RemoteSource(url=value)
    return LocalFile.from_path(value)


def source_name(item: Union[LocalFile, RemoteSource]) -> str:
    """The name recorded as the row provenance for an input."""
    if isinstance(item, LocalFile):
        return item.name
    return item.url
