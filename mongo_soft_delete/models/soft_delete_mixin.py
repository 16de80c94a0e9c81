from datetime import datetime
from typing import Optional, Union
from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field

from mongo_soft_delete.consts import DELETED_AT_FIELD, DELETED_BY_FIELD


class SoftDeleteMixin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deleted: bool = Field(
        default=False, description="Soft delete flag"
    )
    deleted_at: Optional[datetime] = Field(
        default=None, alias=DELETED_AT_FIELD, description="Deletion timestamp"
    )
    deleted_by: Optional[Union[PydanticObjectId, str]] = Field(
        default=None, alias=DELETED_BY_FIELD, description="Actor who deleted the document"
    )

    def is_deleted(self) -> bool:
        return self.deleted
