from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class FileItem(BaseModel):
    id: str
    name: str
    file_type: Literal["file", "folder"] = Field(serialization_alias="type")
    size: int | None = Field(default=None)
    date_modified: datetime
    extension: str | None = Field(default=None)
    path: str

    @property
    def is_folder(self) -> bool:
        return self.file_type == "folder"


class TextFileContent(BaseModel):
    content: str
    truncated: bool = Field(default=False)
    encoding: str = Field(default="utf-8")
    size: int = Field(default=0)


class BaseCommand(BaseModel):
    command_name: str
    description: str = Field(default="")
    command_params: dict[str, Any] = Field(default_factory=dict)

    func: Any = Field(default=None, exclude=True)

    def invoke(self, params: dict[str, Any] | None = None) -> Any:
        """Run the command with keyword params validated against its signature."""
        return self.func(**(params or {}))
