"""
Material type and NGO reference data
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.material_type import MaterialType
from ..models.ngo import NGO
from ..schemas.material import MaterialTypeResponse
from ..schemas.ngo import NGOResponse

router = APIRouter()


@router.get("/material-types", response_model=List[MaterialTypeResponse])
def get_material_types(category: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(MaterialType)
    if category:
        query = query.filter(MaterialType.category.ilike(category))
    return query.order_by(MaterialType.name).all()


@router.get("/material-types/categories", response_model=List[str])
def get_material_categories(db: Session = Depends(get_db)):
    rows = db.query(MaterialType.category).distinct().order_by(MaterialType.category).all()
    return [row[0] for row in rows]


@router.get("/ngos", response_model=List[NGOResponse])
def get_ngos(db: Session = Depends(get_db)):
    return db.query(NGO).order_by(NGO.name).all()


@router.get("/ngos/{ngo_id}", response_model=NGOResponse)
def get_ngo(ngo_id: int, db: Session = Depends(get_db)):
    ngo = db.query(NGO).filter(NGO.id == ngo_id).first()
    if not ngo:
        raise HTTPException(status_code=404, detail="NGO not found")
    return ngo
