"""
MCP tool catalog for the Gemini Files server.

Each tool maps to exactly one FileOperation. Argument models validate the
`arguments` object of a `tools/call` request.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gemini_files.core.safety import FileOperation


@dataclass
class ToolAnnotations:
    """Behaviour hints advertised to MCP clients."""

    read_only: bool
    destructive: bool
    idempotent: bool
    open_world: bool = True

    def to_dict(self) -> Dict[str, bool]:
        return {
            "readOnlyHint": self.read_only,
            "destructiveHint": self.destructive,
            "idempotentHint": self.idempotent,
            "openWorldHint": self.open_world,
        }


@dataclass
class ToolDefinition:
    """One entry of the `tools/list` catalog."""

    name: str
    description: str
    operation: FileOperation
    properties: Dict[str, Any]
    annotations: ToolAnnotations
    required: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": "object", "properties": self.properties}
        if self.required:
            schema["required"] = self.required
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": schema,
            "annotations": self.annotations.to_dict(),
        }


_CONFIRM = {"type": "boolean", "description": "Required for writes in balanced safety mode"}

TOOLS: List[ToolDefinition] = [
    ToolDefinition(
        name="files_upload",
        description="Upload a file to Gemini Files API.",
        operation=FileOperation.UPLOAD,
        properties={
            "path": {"type": "string"},
            "displayName": {"type": "string"},
            "mimeType": {"type": "string"},
            "confirm": _CONFIRM,
        },
        required=["path"],
        annotations=ToolAnnotations(read_only=False, destructive=False, idempotent=False),
    ),
    ToolDefinition(
        name="files_list",
        description="List files from Gemini Files API.",
        operation=FileOperation.LIST,
        properties={
            "pageSize": {"type": "number"},
            "pageToken": {"type": "string"},
        },
        annotations=ToolAnnotations(read_only=True, destructive=False, idempotent=True),
    ),
    ToolDefinition(
        name="files_get",
        description="Get a file by name.",
        operation=FileOperation.GET,
        properties={"name": {"type": "string"}},
        required=["name"],
        annotations=ToolAnnotations(read_only=True, destructive=False, idempotent=True),
    ),
    ToolDefinition(
        name="files_delete",
        description="Delete a file by name.",
        operation=FileOperation.DELETE,
        properties={"name": {"type": "string"}, "confirm": _CONFIRM},
        required=["name"],
        annotations=ToolAnnotations(read_only=False, destructive=True, idempotent=True),
    ),
    ToolDefinition(
        name="files_download",
        description="Download a file by name to a local path.",
        operation=FileOperation.DOWNLOAD,
        properties={
            "name": {"type": "string"},
            "outputPath": {"type": "string"},
            "confirm": _CONFIRM,
        },
        required=["name", "outputPath"],
        annotations=ToolAnnotations(read_only=False, destructive=False, idempotent=True),
    ),
]

TOOLS_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in TOOLS}


def get_tool(name: str) -> Optional[ToolDefinition]:
    return TOOLS_BY_NAME.get(name)


def list_tools() -> Dict[str, Any]:
    """Result body for `tools/list`."""
    return {"tools": [tool.to_dict() for tool in TOOLS]}


# =============================================================================
# Argument models
# =============================================================================


class _Arguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UploadArguments(_Arguments):
    path: str = Field(min_length=1)
    display_name: Optional[str] = Field(None, alias="displayName")
    mime_type: Optional[str] = Field(None, alias="mimeType")


class ListArguments(_Arguments):
    page_size: Optional[int] = Field(None, alias="pageSize", gt=0)
    page_token: Optional[str] = Field(None, alias="pageToken")


class NameArguments(_Arguments):
    name: str = Field(min_length=1)


class DownloadArguments(_Arguments):
    name: str = Field(min_length=1)
    output_path: str = Field(alias="outputPath", min_length=1)
