from dataclasses import dataclass, asdict, replace
from typing import Literal, Optional

from pydantic import BaseModel, Field


@dataclass
class PromptRecord:
    prompt_id: str
    category: str
    sub_category: str
    key: str
    prompt_text: str
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    is_default: bool = False
    version: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: str = "system"
    updated_by: str = "system"
    id: Optional[str] = None

    @property
    def address(self) -> tuple[str, str, str]:
        return (self.category, self.sub_category, self.key)

    def to_dict(self):
        return asdict(self)

    def to_row(self) -> dict:
        """Column payload for the prompt table (store-assigned fields omitted when unset)."""
        row = asdict(self)
        for col in ("id", "created_at", "updated_at"):
            if row[col] is None:
                row.pop(col)
        return row

    @classmethod
    def from_row(cls, row: dict) -> "PromptRecord":
        return cls(
            prompt_id=row["prompt_id"],
            category=row["category"],
            sub_category=row["sub_category"],
            key=row["key"],
            prompt_text=row.get("prompt_text") or "",
            name=row.get("name") or "",
            description=row.get("description"),
            is_active=bool(row.get("is_active", True)),
            is_default=bool(row.get("is_default", False)),
            version=int(row.get("version") or 1),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            created_by=row.get("created_by") or "system",
            updated_by=row.get("updated_by") or "system",
            id=str(row["id"]) if row.get("id") is not None else None,
        )

    def copy(self, **changes) -> "PromptRecord":
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# API models
# ---------------------------------------------------------------------------

class PromptOut(BaseModel):
    prompt_id: str
    category: str
    sub_category: str
    key: str
    name: str
    prompt_text: str
    description: str | None = None
    is_active: bool
    is_default: bool
    version: int
    placeholders: list[str] = []
    created_at: str | None = None
    updated_at: str | None = None
    created_by: str | None = None
    updated_by: str | None = None


class PromptSubCategoryGroup(BaseModel):
    sub_category: str
    sub_category_name: str
    prompts: list[PromptOut]


class PromptGroup(BaseModel):
    category: str
    category_name: str
    sub_categories: list[PromptSubCategoryGroup]


class PromptsResponse(BaseModel):
    success: bool = True
    data: list[PromptGroup]
    is_from_database: bool


class PromptInitializeRequest(BaseModel):
    force_reset: bool = Field(default=False, alias="forceReset")

    model_config = {"populate_by_name": True}


class PromptResetRequest(BaseModel):
    prompt_id: str = Field(alias="promptId")

    model_config = {"populate_by_name": True}


class PromptUpdateRequest(BaseModel):
    prompt_id: str = Field(alias="promptId")
    prompt_text: str = Field(alias="promptText")
    changed_by: str = Field(default="user", alias="changedBy")
    change_reason: str | None = Field(default=None, alias="changeReason")

    model_config = {"populate_by_name": True}


class PromptMigrateRequest(BaseModel):
    force: bool = False


class PromptPreviewRequest(BaseModel):
    category: str
    sub_category: str = Field(alias="subCategory")
    key: str
    variables: dict[str, str] = {}

    model_config = {"populate_by_name": True}


class PromptPreviewResponse(BaseModel):
    text: str
    provenance: Literal["store", "default-fallback"]
    unresolved_placeholders: list[str]
