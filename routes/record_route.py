"""FastAPI routes for record curation, lookup, and export."""

from typing import Dict

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.record_controller import (
	add_blank,
	add_manual,
	begin_edit,
	cancel_edit,
	commit_edit,
	delete_record,
	export_records,
	list_records,
	lookup_chemical,
	replace_record,
	update_edit,
)
from models.inventory_models import LookupMode

router = APIRouter(prefix="/api", tags=["records"])


class ManualPayload(BaseModel):
	name: str = ""


class FieldPayload(BaseModel):
	field: str
	value: str = ""


class RecordPayload(BaseModel):
	fields: Dict[str, str]


class LookupPayload(BaseModel):
	query: str
	mode: LookupMode = LookupMode.BY_IDENTIFIER


@router.get("/records")
async def list_records_route(request: Request):
	try:
		return await list_records(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/records/blank")
async def add_blank_route(request: Request):
	try:
		return await add_blank(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/records/manual")
async def add_manual_route(request: Request, payload: ManualPayload):
	try:
		return await add_manual(request, payload.name)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.patch("/records/edit")
async def update_edit_route(request: Request, payload: FieldPayload):
	try:
		return await update_edit(request, payload.field, payload.value)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/records/edit/commit")
async def commit_edit_route(request: Request):
	try:
		return await commit_edit(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/records/edit/cancel")
async def cancel_edit_route(request: Request):
	try:
		return await cancel_edit(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/records/{index}/edit")
async def begin_edit_route(request: Request, index: int):
	try:
		return await begin_edit(request, index)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/records/{index}")
async def replace_record_route(request: Request, index: int, payload: RecordPayload):
	try:
		return await replace_record(request, index, payload.fields)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/records/{index}")
async def delete_record_route(request: Request, index: int):
	try:
		return await delete_record(request, index)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/lookup")
async def lookup_route(request: Request, payload: LookupPayload):
	try:
		return await lookup_chemical(request, payload.query, payload.mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/export")
async def export_route(request: Request):
	"""Download the inventory as chemical_labels_data.xlsx."""
	try:
		return await export_records(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
