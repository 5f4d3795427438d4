from pydantic import BaseModel
from typing import Optional

class DoctorResponse(BaseModel):
    id: str
    full_name: str
    specialization: str
    availability: Optional[str] = None

    class Config:
        from_attributes = True
