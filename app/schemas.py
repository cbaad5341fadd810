from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models import (
    DeliveryNoteStatus,
    EquipmentCondition,
    EquipmentStatus,
    OrderStatus,
    ProjectStatus,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProjectIn(ApiModel):
    ritm_code: str
    name: str
    client: str
    datacenter: str
    status: ProjectStatus = ProjectStatus.ACTIVE


class ProjectOut(ApiModel):
    id: int
    ritm_code: str
    name: str
    client: str
    datacenter: str
    status: ProjectStatus


class OrderIn(ApiModel):
    project_id: int
    code: str
    vendor: str
    expected_equipment_count: int = Field(default=0, ge=0)
    status: OrderStatus = OrderStatus.PENDING_RECEIVE


class OrderUpdateIn(ApiModel):
    code: str
    vendor: str
    expected_equipment_count: int = Field(default=0, ge=0)
    status: OrderStatus = OrderStatus.PENDING_RECEIVE


class OrderOut(ApiModel):
    id: int
    project_id: int
    code: str
    vendor: str
    expected_equipment_count: int
    status: OrderStatus


class DeliveryNoteIn(ApiModel):
    order_id: int
    delivery_code: str
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_equipment_count: int = Field(default=0, ge=0)


class DeliveryNoteUpdateIn(ApiModel):
    delivery_code: str
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_equipment_count: int = Field(default=0, ge=0)


class DeliveryNoteOut(ApiModel):
    id: int
    order_id: int
    delivery_code: str
    carrier: str | None
    tracking_number: str | None
    estimated_equipment_count: int
    status: DeliveryNoteStatus


class EquipmentIn(ApiModel):
    delivery_note_id: int
    serial_number: str
    manufacturer: str
    model: str
    asset_tag: str | None = None
    category: str | None = None
    condition: EquipmentCondition = EquipmentCondition.NEW
    status: EquipmentStatus = EquipmentStatus.RECEIVED


class EquipmentUpdateIn(ApiModel):
    serial_number: str
    manufacturer: str
    model: str
    asset_tag: str | None = None
    category: str | None = None
    condition: EquipmentCondition = EquipmentCondition.NEW
    status: EquipmentStatus = EquipmentStatus.RECEIVED


class EquipmentOut(ApiModel):
    id: int
    delivery_note_id: int
    serial_number: str
    asset_tag: str | None
    manufacturer: str
    model: str
    category: str | None
    condition: EquipmentCondition
    status: EquipmentStatus
    is_verified: bool
    verification_photo_path: str | None


class ProgressOut(ApiModel):
    level: str
    id: int
    verified: int
    total: int
    percentage: int
    is_empty: bool
    derived_status: str


class ValidationSessionOut(ApiModel):
    delivery_note: DeliveryNoteOut
    equipment: list[EquipmentOut]
    progress: ProgressOut
    all_verified: bool


class UploadOut(ApiModel):
    file_path: str
    original_name: str
    size: int


class LoginIn(ApiModel):
    username: str
    password: str


class PrincipalOut(ApiModel):
    id: int
    username: str
    role: str


class ErrorOut(ApiModel):
    error: str
    title: str
    message: str
