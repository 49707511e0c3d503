import logging
from fastapi import APIRouter, Depends, FastAPI, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Dict, Annotated, Optional

from .database import get_database
from .exceptions import DatabaseError, InvalidArgument
from .models import ApiResponse, BulkDeleteRequest, BulkResponse, BulkUpdateRequest, RowsResponse, UpdateRequest
from .rate_limiter import WRITE_LIMIT, limiter
from .service import TableService
from .table_view import count_outcomes, row_key, summary_message, table_layout

SUCCESS_MESSAGE = "Success"


def get_table_service(request: Request) -> TableService:
    """
    Resolve the service for the database the application was started with.
    """
    database = getattr(request.app.state, "database", None) or get_database()
    return TableService(database)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Translate service errors into the response envelope.

    InvalidArgument and malformed bodies map to 400, backend failures and
    anything unexpected to 500.
    """

    @app.exception_handler(InvalidArgument)
    async def invalid_argument_handler(request: Request, exc: InvalidArgument):
        logging.warning(f"Rejected {request.method} {request.url.path}: {exc}")
        return _error_response(400, str(exc))

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        return _error_response(500, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _error_response(400, f"Invalid request body: {details}")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logging.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(500, f"Internal server error: {exc}")


def create_database_routes() -> APIRouter:
    """
    Creates and returns the router for generic table access.
    """
    router = APIRouter(prefix="/api/database", tags=["Database"])

    TableName = Annotated[str, Path(title="The name of the table")]
    Service = Annotated[TableService, Depends(get_table_service)]

    # --- Introspection ---

    @router.get("/tables")
    def list_tables(service: Service) -> Dict[str, Any]:
        """Names of all user tables."""
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "data": service.list_tables(),
        }

    @router.get("/tables/{name}/info")
    def get_table_info(name: TableName, service: Service) -> Dict[str, Any]:
        """
        Raw column descriptions, in the shape the backend reports them.
        """
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "data": service.describe_table(name),
        }

    @router.get("/tables/{name}/columns")
    def get_table_columns(name: TableName, service: Service) -> Dict[str, Any]:
        """
        Normalized columns plus what the grid needs to render the table.
        """
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "data": table_layout(service.get_columns(name)),
        }

    # --- Reads ---

    @router.get("/tables/{name}")
    def get_table_data(
        name: TableName,
        service: Service,
        page: Optional[str] = None,
        page_size: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        One page of rows. Invalid or missing paging arguments fall back to
        page 1 of 10. ``keys`` holds the grid key of each row, in order.
        """
        columns = service.get_columns(name)
        total, rows = service.fetch_page(name, page, page_size, columns)
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "data": rows,
            "keys": [row_key(row, columns) for row in rows],
            "total": total,
        }

    # --- Mutations ---

    @router.post("/tables/{name}", response_model=ApiResponse)
    @limiter.limit(WRITE_LIMIT)
    def create_record(
        request: Request, name: TableName, row: Dict[str, Any], service: Service
    ):
        service.insert(name, row)
        return {"success": True, "message": "Record created successfully"}

    @router.put("/tables/{name}", response_model=RowsResponse)
    @limiter.limit(WRITE_LIMIT)
    def update_records(
        request: Request, name: TableName, body: UpdateRequest, service: Service
    ):
        rows = service.update(name, body.condition, body.update)
        return {"success": True, "message": "Record updated successfully", "rows": rows}

    @router.delete("/tables/{name}", response_model=RowsResponse)
    @limiter.limit(WRITE_LIMIT)
    def delete_records(
        request: Request, name: TableName, condition: Dict[str, Any], service: Service
    ):
        """
        Delete the rows matching the body, which is typically a full row as
        shown in the grid.
        """
        rows = service.delete(name, condition)
        return {"success": True, "message": "Record deleted successfully", "rows": rows}

    @router.put("/tables/{name}/bulk-update", response_model=BulkResponse)
    @limiter.limit(WRITE_LIMIT)
    def bulk_update_records(
        request: Request, name: TableName, body: BulkUpdateRequest, service: Service
    ):
        """
        Run each item as its own update. Item failures are reported in
        ``results`` and do not fail the request.
        """
        results = service.bulk_update(name, [item.model_dump() for item in body.items])
        return {
            "success": True,
            "message": summary_message("update", results),
            "results": results,
            **count_outcomes(results),
        }

    @router.delete("/tables/{name}/bulk-delete", response_model=BulkResponse)
    @limiter.limit(WRITE_LIMIT)
    def bulk_delete_records(
        request: Request, name: TableName, body: BulkDeleteRequest, service: Service
    ):
        results = service.bulk_delete(name, body.conditions)
        return {
            "success": True,
            "message": summary_message("delete", results),
            "results": results,
            **count_outcomes(results),
        }

    return router
