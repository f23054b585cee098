from __future__ import annotations
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from dotenv import load_dotenv
import os
import yaml

load_dotenv()

OWID_URL = "https://covid.ourworldindata.org/data/owid-covid-data.csv"

class Settings(BaseModel):
    owid_csv_path: str = os.getenv("OWID_CSV_PATH", OWID_URL)
    study_path: str = os.getenv(
        "STUDY_PATH", os.path.join(os.path.dirname(__file__), "study.yaml")
    )

    trends_mode: str = os.getenv("TRENDS_MODE", "pytrends")
    trends_csv_path: str = os.getenv("TRENDS_CSV_PATH", "")

    pytrends_hl: str = os.getenv("PYTRENDS_HL", "en-US")
    pytrends_tz: int = int(os.getenv("PYTRENDS_TZ", "0"))

    output_dir: str = os.getenv("OUTPUT_DIR", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()


class StudyLocation(BaseModel):
    location: str
    geo: str

    @field_validator("geo")
    @classmethod
    def _upper_geo(cls, v: str) -> str:
        return v.strip().upper()


class Study(BaseModel):
    keyword: str
    start_date: date = date(2020, 12, 1)
    end_date: date = date(2021, 8, 11)
    # Google reports weekly rows on Sundays; shifting by 2 lands them on the
    # same weekday as start_date for the reference window.
    search_date_offset_days: int = Field(default=2, ge=0)
    locations: List[StudyLocation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_window(self) -> "Study":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def location_names(self) -> List[str]:
        return [loc.location for loc in self.locations]


def load_study(path: Optional[str] = None) -> Study:
    with open(path or settings.study_path, "r", encoding="utf-8") as f:
        return Study.model_validate(yaml.safe_load(f) or {})
