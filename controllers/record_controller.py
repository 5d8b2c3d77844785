"""Controllers for curating, looking up, and exporting inventory records."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, Response

from controllers.image_controller import get_session
from models.inventory_models import LookupMode, Record, blank_fields
from services.export_adapter import ExportAdapter
from services.inventory_session import SessionBusyError
from services.lookup_service import LookupNotFound


def _record_payload(record: Record, index: int) -> Dict[str, Any]:
	return {"index": index, "fields": record.to_row(), "source_image_id": record.source_image_id}


def _table(request: Request) -> Dict[str, Any]:
	store = get_session(request).store
	columns = store.columns()
	return {"columns": columns, "rows": store.rows(columns), "count": len(store)}


async def list_records(request: Request) -> Dict[str, Any]:
	"""Return the column set and one full row per record."""
	return _table(request)


async def add_blank(request: Request) -> Dict[str, Any]:
	"""Append a record with the canonical empty fields."""
	store = get_session(request).store
	record = store.append_blank()
	return _record_payload(record, len(store) - 1)


async def add_manual(request: Request, name: str) -> Dict[str, Any]:
	"""Append a canonical record named after a query the lookup could not resolve."""
	session = get_session(request)
	record = session.add_manual(name)
	return _record_payload(record, len(session.store) - 1)


async def delete_record(request: Request, index: int) -> Dict[str, Any]:
	"""Remove a record by position; a stale position is reported, not rejected."""
	removed = get_session(request).store.remove_at(index)
	return {"index": index, "removed": removed, **_table(request)}


async def replace_record(request: Request, index: int, fields: Mapping[str, str]) -> Dict[str, Any]:
	"""Apply field changes to one record in a single edit cycle."""
	updated = get_session(request).store.replace_fields(index, fields)
	return {"index": index, "updated": updated, **_table(request)}


async def begin_edit(request: Request, index: int) -> Dict[str, Any]:
	store = get_session(request).store
	started = store.begin_edit(index)
	pending = store.pending_edit
	return {
		"index": index,
		"editing": started,
		"fields": dict(pending.fields) if started and pending else None,
	}


async def update_edit(request: Request, field: str, value: str) -> Dict[str, Any]:
	store = get_session(request).store
	if not store.update_edit_field(field, value):
		raise HTTPException(status_code=409, detail="No record is being edited.")
	pending = store.pending_edit
	return {"index": pending.index, "fields": dict(pending.fields)}


async def commit_edit(request: Request) -> Dict[str, Any]:
	committed = get_session(request).store.commit_edit()
	return {"committed": committed, **_table(request)}


async def cancel_edit(request: Request) -> Dict[str, Any]:
	get_session(request).store.cancel_edit()
	return {"cancelled": True}


async def lookup_chemical(request: Request, query: str, mode: LookupMode) -> Any:
	"""Look up one chemical and append it.

	Returns:
		The appended record, or a 404 response describing the manual-add
		fallback when the chemical could not be found. The fallback is only
		applied when the client calls the manual endpoint.

	Raises:
		HTTPException(400) for a blank query, 409 while the session is busy.
	"""
	session = get_session(request)
	try:
		record = await session.lookup(query, mode)
	except SessionBusyError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except LookupNotFound as exc:
		return JSONResponse(
			status_code=404,
			content={
				"detail": (
					"Chemical not found. Item must be manually added to inventory. Please check the CAS "
					"number or chemical name and try again, or add the information manually."
				),
				"query": exc.query,
				"mode": exc.mode.value,
				"fallback": {
					"action": "POST /api/records/manual",
					"body": {"name": exc.query},
					"fields": blank_fields(exc.query),
				},
			},
		)
	return _record_payload(record, len(session.store) - 1)


async def export_records(request: Request) -> Response:
	"""Return the inventory as an .xlsx download.

	Raises:
		HTTPException(409) when there are no records.
	"""
	store = get_session(request).store
	adapter: ExportAdapter = getattr(request.app.state, "export_adapter", None) or ExportAdapter()
	columns = store.columns()
	try:
		payload = adapter.to_bytes(store.rows(columns), columns)
	except ValueError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	return Response(
		content=payload,
		media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
		headers={"Content-Disposition": f'attachment; filename="{adapter.filename}"'},
	)

