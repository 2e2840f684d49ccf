from pydantic import BaseModel, ConfigDict, Field


class Authority(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    phone: str = ""


class PerformanceScore(BaseModel):
    value: int = Field(ge=0, le=100)
    label: str
    star_rating: str
    # False only for the "No Data" sentinel, so it never reads as an earned 0
    has_data: bool = True
    efficiency: float = 0.0
    trust: float = 0.0
    responsiveness: float = 0.0


class AuthorityOut(BaseModel):
    key: str
    name: str
    phone: str
    assigned: int
    score: PerformanceScore
