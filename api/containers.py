# api/containers.py
from fastapi import APIRouter, HTTPException

from models.water_schemas import Container, ContainerCreate, ContainerReorder, ContainerUpdate, PORTIONS
from services import container_catalog
from services.supabase_service import get_supabase_service

router = APIRouter(prefix="/api/containers", tags=["containers"])

@router.get("/portions")
async def get_portions():
    """Fractions offered when logging part of a container"""
    return {
        "success": True,
        "portions": [
            {"numerator": p.numerator, "denominator": p.denominator, "label": p.label}
            for p in PORTIONS
        ]
    }

@router.get("/{user_id}")
async def get_containers(user_id: str):
    try:
        containers = await get_supabase_service().get_containers(user_id)
        return {"success": True, "containers": [c.model_dump() for c in containers]}
    except Exception as e:
        print(f"❌ Error getting containers: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/{user_id}")
async def add_container(user_id: str, data: ContainerCreate):
    try:
        store = get_supabase_service()
        containers = await store.get_containers(user_id)
        container = Container(**data.model_dump())
        saved = await store.save_containers(user_id, container_catalog.append(containers, container))

        print(f"✅ Added container {container.name} ({container.volume_ml} mL) for user {user_id}")
        return {"success": True, "container": saved[-1].model_dump()}
    except Exception as e:
        print(f"❌ Error adding container: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/{user_id}/{container_id}")
async def update_container(user_id: str, container_id: str, data: ContainerUpdate):
    try:
        store = get_supabase_service()
        containers = await store.get_containers(user_id)
        if container_catalog.find_container(containers, container_id) is None:
            raise HTTPException(status_code=404, detail="Container not found")

        changes = {k: v for k, v in data.model_dump().items() if v is not None}
        updated = [
            c.model_copy(update=changes) if c.id == container_id else c
            for c in containers
        ]
        await store.save_containers(user_id, updated)
        return {"success": True, "container": container_catalog.find_container(updated, container_id).model_dump()}
    except HTTPException:
        raise
    except Exception as e:
        print(f"❌ Error updating container: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{user_id}/{container_id}")
async def delete_container(user_id: str, container_id: str):
    """Remove a container. Entries logged with it keep their amounts."""
    try:
        store = get_supabase_service()
        containers = await store.get_containers(user_id)
        if container_catalog.find_container(containers, container_id) is None:
            raise HTTPException(status_code=404, detail="Container not found")

        remaining = await store.save_containers(user_id, container_catalog.remove(containers, container_id))
        return {"success": True, "containers": [c.model_dump() for c in remaining]}
    except HTTPException:
        raise
    except Exception as e:
        print(f"❌ Error deleting container: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/{user_id}/reorder")
async def reorder_containers(user_id: str, data: ContainerReorder):
    try:
        store = get_supabase_service()
        containers = await store.get_containers(user_id)
        reordered = container_catalog.reorder(containers, data.from_index, data.to_index)
        saved = await store.save_containers(user_id, reordered)
        return {"success": True, "containers": [c.model_dump() for c in saved]}
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error reordering containers: {e}")
        raise HTTPException(status_code=500, detail=str(e))
