from typing import Optional, Type

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from petfunny.api.deps import get_clock, get_repository
from petfunny.core.errors import NotFoundError
from petfunny.models.entities import CustomerIn, DogBreedIn, MimoIn, PetIn, ServiceIn, mimo_row_is_available
from petfunny.services.dashboard_service import summarize

router = APIRouter()


def register_crud(path: str, table: str, model: Type[BaseModel], singular: str):
    """Plain create/read/update/delete routes for a reference table."""

    @router.get(f"/{path}/{{record_id}}", name=f"get_{singular}")
    async def get_one(record_id: int, repository=Depends(get_repository)):
        row = await repository.get_record(table, record_id)
        if row is None:
            raise NotFoundError(singular.title(), record_id)
        return {singular: row}

    @router.post(f"/{path}", status_code=201, name=f"create_{singular}")
    async def create(req: model, repository=Depends(get_repository)):
        row = await repository.create_record(table, req.model_dump(mode="json"))
        return {singular: row}

    @router.put(f"/{path}/{{record_id}}", name=f"update_{singular}")
    async def update(record_id: int, req: model, repository=Depends(get_repository)):
        row = await repository.update_record(table, record_id, req.model_dump(mode="json"))
        if row is None:
            raise NotFoundError(singular.title(), record_id)
        return {singular: row}

    @router.delete(f"/{path}/{{record_id}}", name=f"delete_{singular}")
    async def delete(record_id: int, repository=Depends(get_repository)):
        if not await repository.delete_record(table, record_id):
            raise NotFoundError(singular.title(), record_id)
        return {"deleted": True}


@router.get("/customers")
async def list_customers(repository=Depends(get_repository)):
    return {"customers": await repository.list_records("customers")}


@router.get("/pets")
async def list_pets(customer_id: Optional[int] = None, repository=Depends(get_repository)):
    filters = {"customer_id": customer_id} if customer_id is not None else None
    return {"pets": await repository.list_records("pets", filters)}


@router.get("/services")
async def list_services(repository=Depends(get_repository)):
    return {"services": await repository.list_records("services")}


@router.get("/mimos")
async def list_mimos(active: bool = False, repository=Depends(get_repository), clock=Depends(get_clock)):
    rows = await repository.list_records("mimos")
    if active:
        now = clock()
        rows = [row for row in rows if mimo_row_is_available(row, now)]
    return {"mimos": rows}


@router.get("/breeds")
async def list_breeds(repository=Depends(get_repository)):
    return {"breeds": await repository.list_records("dog_breeds")}


register_crud("customers", "customers", CustomerIn, "customer")
register_crud("pets", "pets", PetIn, "pet")
register_crud("services", "services", ServiceIn, "service")
register_crud("mimos", "mimos", MimoIn, "mimo")
register_crud("breeds", "dog_breeds", DogBreedIn, "breed")


@router.get("/dashboard")
async def dashboard(repository=Depends(get_repository)):
    return summarize(
        bookings=await repository.list_bookings(),
        customers=await repository.list_records("customers"),
        pets=await repository.list_records("pets"),
        services=await repository.list_records("services"),
        mimos=await repository.list_records("mimos"),
    )
