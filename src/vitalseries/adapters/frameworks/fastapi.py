"""FastAPI adapter exposing aggregated series to chart front-ends."""

import math
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from vitalseries.core.encoding import (
    encode_series_csv,
    encode_series_ndjson,
    series_to_dict,
)
from vitalseries.core.engine import AggregationEngine
from vitalseries.core.errors import DataSourceUnavailable, InvalidRange, UnknownMetric


def create_series_router(engine: AggregationEngine) -> APIRouter:
    """Create a FastAPI router with /series and /metrics endpoints.

    Args:
        engine: Aggregation engine that serves the queries.

    Returns:
        APIRouter with the endpoints configured.
    """
    router = APIRouter()

    @router.get("/metrics")
    async def list_metrics() -> JSONResponse:
        """Return the metric definitions the engine knows about."""
        return JSONResponse(
            [
                {
                    "id": definition.id,
                    "unit": definition.display_unit,
                    "reduction": definition.reduction.value,
                    "valid_range": [
                        None if math.isinf(bound) else bound
                        for bound in definition.valid_range
                    ],
                }
                for definition in sorted(engine.catalog, key=lambda d: d.id)
            ]
        )

    @router.get("/series")
    async def get_series(
        start: datetime,
        end: datetime,
        metric: list[str] = Query(),
        points: int | None = Query(default=None, ge=1),
        output: Literal["json", "ndjson", "csv"] = Query(default="json", alias="format"),
    ) -> Response:
        """Return aggregated series for the requested metrics and range.

        Args:
            start: Inclusive range start (ISO 8601 or Unix seconds).
            end: Exclusive range end (ISO 8601 or Unix seconds).
            metric: Metric ids; repeat the parameter for several metrics.
            points: Overrides the engine's point budget.
            output: Response encoding, passed as the ``format`` parameter.
        """
        try:
            series = await engine.aggregate_historical_data_async(
                metric, start, end, points
            )
        except UnknownMetric as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except InvalidRange as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except DataSourceUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e)) from e

        if output == "ndjson":
            return Response(
                content=encode_series_ndjson(series),
                media_type="application/x-ndjson",
            )
        if output == "csv":
            return Response(content=encode_series_csv(series), media_type="text/csv")
        return JSONResponse(
            {"series": {metric_id: series_to_dict(s) for metric_id, s in series.items()}}
        )

    return router
