from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional, Dict, Any, Literal
import time
import traceback

app = FastAPI(title="Multi-Day Visit Planner")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _parse_coordinate(v):
    """Strings are parsed; unparsable values become None and are reported as unplanned"""
    if isinstance(v, str):
        try:
            return float(v)
        except ValueError:
            return None
    return v


def _rename_short_coordinates(data):
    """lat/lng/lon keys to latitude/longitude"""
    if isinstance(data, dict):
        data = dict(data)
        if 'latitude' not in data and 'lat' in data:
            data['latitude'] = data.pop('lat')
        for key in ('lng', 'lon'):
            if 'longitude' not in data and key in data:
                data['longitude'] = data.pop(key)
    return data


# Pydantic models for the planning API
class VisitIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    latitude: Optional[float] = Field(None, description="Visit latitude - accepts string or float")
    longitude: Optional[float] = Field(None, description="Visit longitude - accepts string or float")
    address: Optional[str] = None
    name: Optional[str] = None
    service_minutes: Optional[float] = None
    price: Optional[Any] = None
    completed: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def accept_short_coordinate_names(cls, data):
        return _rename_short_coordinates(data)

    @field_validator('id', mode="before")
    @classmethod
    def parse_id(cls, v):
        if v is None:
            return v
        return str(v)

    @field_validator('latitude', 'longitude', mode="before")
    @classmethod
    def parse_coordinates(cls, v):
        return _parse_coordinate(v)


class HomeBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    latitude: float = Field(..., ge=-90, le=90, description="Home base latitude - accepts string or float")
    longitude: float = Field(..., ge=-180, le=180, description="Home base longitude - accepts string or float")
    address: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_short_coordinate_names(cls, data):
        return _rename_short_coordinates(data)

    @field_validator('latitude', 'longitude', mode="before")
    @classmethod
    def parse_coordinates(cls, v):
        if isinstance(v, str):
            try:
                return float(v)
            except ValueError:
                raise ValueError(f"Invalid coordinate value: {v}")
        return v


class PlanDaysRequest(BaseModel):
    visits: List[VisitIn]
    num_days: int
    home_base: Optional[HomeBase] = None
    grouping_policy: Optional[Literal["radius", "street", "auto"]] = None
    seed: Optional[int] = None


class SequenceDayRequest(BaseModel):
    visits: List[VisitIn]
    home_base: Optional[HomeBase] = None


class AdjustDaysRequest(BaseModel):
    days: List[List[VisitIn]]
    home_base: Optional[HomeBase] = None
    action: Literal["heavier", "lighter", "move"]
    day: int = Field(..., ge=1, description="1-based day to adjust")
    visit_id: Optional[str] = None
    target_day: Optional[int] = Field(None, ge=1, description="1-based destination day for move")

    @field_validator('visit_id', mode="before")
    @classmethod
    def parse_visit_id(cls, v):
        if v is None:
            return v
        return str(v)


# Helper functions for request conversion
def visit_records(visits: List[VisitIn]) -> List[Dict[str, Any]]:
    """Pydantic visit models to plain record dicts, unset fields dropped"""
    return [visit.model_dump(exclude_none=True) for visit in visits]


def home_base_record(home_base: Optional[HomeBase]) -> Optional[Dict[str, Any]]:
    if home_base is None:
        return None
    return {"latitude": home_base.latitude, "longitude": home_base.longitude}


@app.post(
    "/plan-days",
    summary="Plan Days",
    description="Split visits into balanced working days and order each day from the home base"
)
def plan_days_endpoint(request: PlanDaysRequest):
    try:
        print(f"📅 Starting planning for {len(request.visits)} visits over {request.num_days} days")

        from algorithm.planner.planner import run_planning

        result = run_planning({
            "visits": visit_records(request.visits),
            "num_days": request.num_days,
            "home_base": home_base_record(request.home_base),
            "grouping_policy": request.grouping_policy,
            "seed": request.seed,
        })

        if result["status"] == "true":
            print(f"✅ Planning successful. Days: {len(result['data'])}")
        else:
            print(f"❌ Planning failed: {result.get('metadata', {}).get('error_message', 'Unknown error')}")

        return result

    except HTTPException:
        raise

    except Exception as e:
        print(f"❌ Error in day planning: {str(e)}")
        traceback.print_exc()

        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


@app.post(
    "/sequence-day",
    summary="Sequence Day",
    description="Order one day's visits with a nearest-neighbor walk from the home base"
)
def sequence_day_endpoint(request: SequenceDayRequest):
    try:
        start_time = time.time()

        from algorithm.base.base import prepare_visits, coordinate_from_dict
        from algorithm.base.models import DayBucket
        from algorithm.response.response_standards import create_unplanned_visit
        from ordering.order_integration import get_order_integration

        visits, rejected = prepare_visits(visit_records(request.visits))
        home_base = coordinate_from_dict(home_base_record(request.home_base))

        day_plan = None
        if visits:
            day_plan = get_order_integration().order_day(
                DayBucket(index=0, centroid=None, visits=tuple(visits)), home_base)

        print(f"🧭 Sequenced {len(visits)} visits "
              f"({'nearest neighbor' if home_base is not None else 'input order'})")

        return {
            "status": "true",
            "execution_time": time.time() - start_time,
            "data": day_plan,
            "unplannedVisits": [
                create_unplanned_visit({**item['record'], 'id': item['id']}, item['reason'])
                for item in rejected
            ],
        }

    except HTTPException:
        raise

    except Exception as e:
        print(f"❌ Error in day sequencing: {str(e)}")
        traceback.print_exc()

        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


@app.post(
    "/adjust-days",
    summary="Adjust Days",
    description="Make a day heavier or lighter, or move one visit between days, then re-sequence"
)
def adjust_days_endpoint(request: AdjustDaysRequest):
    try:
        start_time = time.time()

        from algorithm.base.base import prepare_visits, coordinate_from_dict
        from algorithm.base.models import DayBucket, mean_coordinate
        from algorithm.balance.balance import (
            make_day_heavier, make_day_lighter, move_visits_between_days
        )
        from algorithm.response.response_builder import build_standard_response
        from algorithm.response.response_standards import create_unplanned_visit
        from ordering.order_integration import get_order_integration

        num_days = len(request.days)
        day_index = request.day - 1
        if day_index >= num_days:
            raise HTTPException(status_code=400, detail=f"Day {request.day} does not exist")

        # Flatten with stable ids so every visit can be traced back to its day
        records = []
        day_of = {}
        position = 0
        for index, day_visits in enumerate(request.days):
            for record in visit_records(day_visits):
                position += 1
                record.setdefault('id', f"visit-{position}")
                day_of.setdefault(record['id'], index)
                records.append(record)

        visits, rejected = prepare_visits(records)
        home_base = coordinate_from_dict(home_base_record(request.home_base))

        buckets = []
        for index in range(num_days):
            day_visits = tuple(v for v in visits if day_of[v.id] == index)
            centroid = mean_coordinate(v.coordinate for v in day_visits) or home_base
            buckets.append(DayBucket(index=index, centroid=centroid, visits=day_visits))

        if request.action == "heavier":
            buckets, move = make_day_heavier(buckets, day_index, home_base)
        elif request.action == "lighter":
            buckets, move = make_day_lighter(buckets, day_index, home_base)
        else:
            if request.visit_id is None or request.target_day is None:
                raise HTTPException(status_code=400, detail="move requires visit_id and target_day")
            if request.target_day > num_days:
                raise HTTPException(status_code=400, detail=f"Day {request.target_day} does not exist")
            buckets, move = move_visits_between_days(
                buckets, [request.visit_id], day_index, request.target_day - 1)

        print(f"🛠️ Adjustment '{request.action}' on day {request.day}: "
              f"{'moved ' + str(len(move.visit_ids)) + ' visit(s)' if move else 'no change'}")

        day_plans = get_order_integration().apply_day_ordering(buckets, home_base)

        return build_standard_response(
            status="true",
            execution_time=time.time() - start_time,
            days=day_plans,
            unplanned_visits=[
                create_unplanned_visit({**item['record'], 'id': item['id']}, item['reason'])
                for item in rejected
            ],
            optimization_mode="manual_adjustment",
            num_days=num_days,
            home_base=home_base.as_dict() if home_base is not None else None,
            metadata={
                "action": request.action,
                "applied": move is not None,
                "moved_visit_ids": list(move.visit_ids) if move else [],
                "source_day": move.source_index + 1 if move else None,
                "target_day": move.target_index + 1 if move else None,
            }
        )

    except HTTPException:
        raise

    except Exception as e:
        print(f"❌ Error in day adjustment: {str(e)}")
        traceback.print_exc()

        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/")
def root():
    return {
        "message":
        "Multi-Day Visit Planner API",
        "endpoints": [
            "/plan-days", "/sequence-day", "/adjust-days", "/health"
        ],
        "pipeline": {
            "grouping":
            "Adjacent visits merge into one stop (0.1 mi radius, or street and house number)",
            "partitioning":
            "Seeded k-means over stop centroids, first centroid on the home base",
            "balancing":
            "Greedy moves of whole stops, then single visits, toward equal drive + service time",
            "sequencing":
            "Nearest-neighbor walk from the home base and back"
        },
        "adjustments": {
            "endpoint": "/adjust-days",
            "method": "POST",
            "actions": ["heavier", "lighter", "move"],
            "note": "Days are 1-based; adjusted days are returned re-sequenced"
        },
        "usage":
        "POST visits with num_days and an optional home_base to /plan-days"
    }
