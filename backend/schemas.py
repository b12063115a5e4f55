"""
Pydantic schemas for API request/response models
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ExtractedRecordResponse(BaseModel):
    """Fields extracted from an uploaded visa or passport"""
    full_name: str = Field("", description="Client full name (Arabic when available)")
    email: str = Field("", description="Generated client email")
    passport_number: str = Field("", description="Passport number")
    visa_number: str = Field("", description="Visa number (always empty for passports)")
    birth_date: str = Field("", description="Birth date as DD/MM/YYYY")
    client_photo: str = Field("", description="Client photo as a JPEG data-URI")


class CropRequest(BaseModel):
    """Manual crop of a client photo"""
    image: str = Field(..., description="Source image as a base64 data-URI")
    x: float = Field(..., ge=0, description="Left edge in pixels")
    y: float = Field(..., ge=0, description="Top edge in pixels")
    width: float = Field(..., gt=0, description="Crop width in pixels")
    height: float = Field(..., gt=0, description="Crop height in pixels")
    rotation: float = Field(0, description="Clockwise rotation in degrees applied before cropping")
    flip_horizontal: bool = Field(False, description="Mirror horizontally before cropping")
    flip_vertical: bool = Field(False, description="Mirror vertically before cropping")


class CropResponse(BaseModel):
    image: str = Field(..., description="Cropped photo as a JPEG data-URI")


class ClientBase(BaseModel):
    email: Optional[str] = Field(None, description="Client email")
    passport_number: Optional[str] = Field(None, description="Passport number")
    visa_number: Optional[str] = Field(None, description="Visa number")
    birth_date: Optional[str] = Field(None, description="Birth date as DD/MM/YYYY")
    medina_hotel: Optional[str] = Field(None, description="Hotel in Medina")
    mecca_hotel: Optional[str] = Field(None, description="Hotel in Mecca")
    room_type: Optional[str] = Field(None, description="Room type (single, double, ...)")
    client_photo: Optional[str] = Field(None, description="Client photo as a data-URI")


class ClientCreate(ClientBase):
    """Client record saved to history"""
    full_name: str = Field(..., min_length=1, description="Client full name")


class ClientUpdate(ClientBase):
    """Partial update of a saved client"""
    full_name: Optional[str] = Field(None, min_length=1, description="Client full name")


class ClientResponse(ClientBase):
    """Saved client record"""
    id: str = Field(..., description="Client identifier")
    full_name: str = Field(..., description="Client full name")
    created_at: datetime = Field(..., description="When the client was saved")

    class Config:
        from_attributes = True


class ClientListResponse(BaseModel):
    """Response model for client history"""
    clients: List[ClientResponse] = Field(..., description="Saved clients, newest first")
    total: int = Field(..., description="Total number of saved clients")

    class Config:
        from_attributes = True


class ErrorResponse(BaseModel):
    """Standard error response model"""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
