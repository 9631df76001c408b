import json
import os
from typing import Any, Callable, Dict, Tuple, Type

import functions_framework
from flask import Response, make_response
from loguru import logger
from pydantic import BaseModel, ValidationError


def _init_sentry() -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn or (os.getenv("DISABLE_SENTRY") or "").strip().lower() in ("1", "true", "yes", "on"):
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.gcp import GcpIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[GcpIntegration()],
            send_default_pii=True,
            enable_logs=True,
            traces_sample_rate=1.0,
        )
    except Exception as e:
        # Never fail the function due to Sentry init issues.
        logger.warning(f"Sentry init skipped: {e}")


_init_sentry()

# Support both "run as a package" (relative imports) and "run from this folder" (local imports).
try:  # pragma: no cover
    from .aggregator import ReportData, build_budget, build_date_range, build_full_account, build_monthly
    from .auth import authenticate_request, caller_label, can_access
    from .config import get_settings
    from .data_source import FinanceDataSource, FirestoreFinanceSource
    from .firestore_client import get_db
    from .models import (
        BudgetReportRequest,
        DateRangeParams,
        DateRangeReportRequest,
        FullAccountParams,
        FullAccountReportRequest,
        MonthlyReportRequest,
        MonthParams,
        ReportType,
    )
    from .render import render_report
    from .serialization import report_data_to_dict
except ImportError:  # pragma: no cover
    from aggregator import ReportData, build_budget, build_date_range, build_full_account, build_monthly
    from auth import authenticate_request, caller_label, can_access
    from config import get_settings
    from data_source import FinanceDataSource, FirestoreFinanceSource
    from firestore_client import get_db
    from models import (
        BudgetReportRequest,
        DateRangeParams,
        DateRangeReportRequest,
        FullAccountParams,
        FullAccountReportRequest,
        MonthlyReportRequest,
        MonthParams,
        ReportType,
    )
    from render import render_report
    from serialization import report_data_to_dict


def _monthly(source: FinanceDataSource, user_id: str, params) -> ReportData:
    return build_monthly(source, user_id, params.month, params.year)


def _date_range(source: FinanceDataSource, user_id: str, params) -> ReportData:
    return build_date_range(source, user_id, params.from_date, params.to_date)


def _budget(source: FinanceDataSource, user_id: str, params) -> ReportData:
    return build_budget(source, user_id, params.month, params.year)


def _full_account(source: FinanceDataSource, user_id: str, params) -> ReportData:
    return build_full_account(source, user_id, params.from_date, params.to_date)


# path segment -> (report type, document request model, summary query model, aggregation)
REPORT_KINDS: Dict[str, Tuple[ReportType, Type[BaseModel], Type[BaseModel], Callable[..., ReportData]]] = {
    ReportType.MONTHLY.value: (ReportType.MONTHLY, MonthlyReportRequest, MonthParams, _monthly),
    ReportType.DATE_RANGE.value: (ReportType.DATE_RANGE, DateRangeReportRequest, DateRangeParams, _date_range),
    ReportType.BUDGET.value: (ReportType.BUDGET, BudgetReportRequest, MonthParams, _budget),
    ReportType.FULL_ACCOUNT.value: (ReportType.FULL_ACCOUNT, FullAccountReportRequest, FullAccountParams, _full_account),
}


def _cors(resp: Response) -> Response:
    # CORS (local dev convenience)
    resp.headers["Access-Control-Allow-Origin"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type,Authorization"
    resp.headers["Access-Control-Expose-Headers"] = "Content-Disposition"
    return resp


def _json_response(payload: Any, status: int = 200) -> Response:
    resp = make_response(json.dumps(payload, ensure_ascii=False), status)
    resp.headers["Content-Type"] = "application/json; charset=utf-8"
    return _cors(resp)


def _error(message: str, status: int = 400, extra: Dict[str, Any] | None = None) -> Response:
    body: Dict[str, Any] = {"error": message}
    if extra:
        body.update(extra)
    return _json_response(body, status=status)


def _parse_json(request) -> Tuple[Dict[str, Any] | None, Response | None]:
    if not request.data:
        return None, None
    try:
        return request.get_json(silent=False), None
    except Exception:
        return None, _error("Invalid JSON body", 400)


def _document_response(content: bytes, filename: str, content_type: str) -> Response:
    resp = make_response(content, 200)
    resp.headers["Content-Type"] = content_type
    resp.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return _cors(resp)


def _validation_error(e: ValidationError) -> Response:
    details = json.loads(e.json(include_url=False))
    return _error("Validation error", 400, {"details": details})


@functions_framework.http
def report_api(request):
    """
    Cloud Function HTTP entry point for financial report downloads.

    Paths:
      - POST /users/{user_id}/reports/monthly       {month, year, format}
      - POST /users/{user_id}/reports/daterange     {fromDate, toDate, format}
      - POST /users/{user_id}/reports/budget        {month, year, format}
      - POST /users/{user_id}/reports/fullaccount   {format, fromDate?, toDate?}
      - GET  /users/{user_id}/reports/{kind}/summary?...  (aggregated figures as JSON)

    `format` is one of pdf / excel / csv.
    """
    if request.method == "OPTIONS":
        return _json_response({}, status=204)

    path = request.path or "/"
    parts = [p for p in path.split("/") if p]

    if not parts:
        return _json_response(
            {
                "service": "report_api",
                "endpoints": [f"POST /users/{{user_id}}/reports/{kind}" for kind in REPORT_KINDS]
                + ["GET /users/{user_id}/reports/{kind}/summary"],
                "formats": ["pdf", "excel", "csv"],
            }
        )

    if parts[0] != "users" or len(parts) not in (4, 5) or parts[2] != "reports":
        return _error("Not found", 404)
    if len(parts) == 5 and parts[4] != "summary":
        return _error("Not found", 404)

    user_id, kind = parts[1], parts[3]
    route = REPORT_KINDS.get(kind)
    if route is None:
        return _error("Unknown report type", 404, {"code": "UNKNOWN_REPORT_TYPE", "supported": list(REPORT_KINDS)})
    report_type, request_model, summary_model, aggregate = route

    is_summary = len(parts) == 5
    if request.method != ("GET" if is_summary else "POST"):
        return _error("Method not allowed", 405)

    uid, auth_err, auth_status = authenticate_request(request)
    if auth_err:
        return _json_response(auth_err, status=auth_status or 401)
    if not can_access(uid, user_id):
        return _error("Forbidden", 403, {"code": "FORBIDDEN"})

    if is_summary:
        raw: Dict[str, Any] = request.args.to_dict()
        model = summary_model
    else:
        body, err = _parse_json(request)
        if err:
            return err
        raw = body if isinstance(body, dict) else {}
        model = request_model

    try:
        params = model.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Rejected {report_type.value} report request for user {user_id}: {e.error_count()} error(s)")
        return _validation_error(e)

    fmt = getattr(params, "format", None)
    logger.info(
        f"Report requested: user={user_id} type={report_type.value} "
        f"{'summary' if is_summary else f'format={fmt.value}'} caller={caller_label(uid)}"
    )

    try:
        source = FirestoreFinanceSource(get_db())
        data = aggregate(source, user_id, params)
        if is_summary:
            return _json_response({"report_type": report_type.value, "data": report_data_to_dict(data)})
        rendered = render_report(data, fmt)
    except Exception as e:
        logger.exception(f"Report generation failed: user={user_id} type={report_type.value}")
        extra = {"details": str(e)} if get_settings().expose_errors else None
        return _error("Report generation failed", 500, extra)

    logger.info(f"Report generated: {rendered.filename} ({len(rendered.content)} bytes)")
    return _document_response(rendered.content, rendered.filename, rendered.content_type)
