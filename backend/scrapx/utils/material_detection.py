"""
Scrap material detection through the Roboflow workflow endpoint,
and composition pricing for mixed-material listings
"""

import base64
from collections import Counter
from typing import Dict, Iterable, List, Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..core.logging import get_logger
from ..models.material_type import MaterialType

logger = get_logger(__name__)


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def call_detection_workflow(image_url: Optional[str] = None, image_bytes: Optional[bytes] = None) -> dict:
    """
    Send one image to the detection workflow and return the raw JSON result

    Raises:
        HTTPException: 503 if not configured, 504 on timeout, 502 on any upstream failure
    """
    if not settings.roboflow_api_key:
        raise HTTPException(status_code=503, detail="Material detection is not configured")

    if image_bytes is not None:
        image = {"type": "base64", "value": base64.b64encode(image_bytes).decode("ascii")}
    elif image_url:
        image = {"type": "url", "value": image_url}
    else:
        raise HTTPException(status_code=400, detail="An image URL or an image file is required")

    payload = {"api_key": settings.roboflow_api_key, "inputs": {"image": image}}

    try:
        response = httpx.post(
            settings.roboflow_workflow_url,
            json=payload,
            timeout=settings.detection_timeout_seconds,
        )
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException:
        logger.error("Detection request timed out")
        raise HTTPException(
            status_code=504,
            detail="Detection request timed out. Please try again with a simpler image."
        )
    except httpx.HTTPStatusError as e:
        logger.error(f"Detection service returned {e.response.status_code}: {e.response.text[:200]}")
        raise HTTPException(status_code=502, detail=f"Detection service error: {e.response.status_code}")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Detection request failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to reach the detection service")


def parse_detection_result(result: dict, known_materials: Iterable[str]) -> Dict:
    """
    Count predicted classes and keep the ones matching a known material name

    Returns:
        {"counts": {name: count}, "visualized_image_url": Optional[str]}
    """
    outputs = result.get("outputs") or [{}]
    first = outputs[0] or {}
    predictions = (first.get("predictions") or {}).get("predictions") or []

    if not predictions:
        raise HTTPException(
            status_code=422,
            detail="No materials detected. Try uploading a clearer image of your materials."
        )

    counts = Counter(_capitalize(str(p.get("class", ""))) for p in predictions)
    known = set(known_materials)
    matched = {name: count for name, count in counts.items() if name in known}

    if not matched:
        raise HTTPException(
            status_code=422,
            detail="The detected materials don't match any in our system."
        )

    visualized = first.get("visualized_image") or {}
    return {"counts": matched, "visualized_image_url": visualized.get("url")}


def suggest_title(names: List[str]) -> str:
    if len(names) > 1:
        return f"Mixed {', '.join(names)} Scrap"
    return f"{names[0]} Scrap Collection"


def suggest_description(materials: List[Dict]) -> str:
    if len(materials) > 1:
        parts = ", ".join(
            f"{m['name']} ({m['count']})" if m["count"] > 1 else m["name"] for m in materials
        )
        return f"Mixed recyclable materials with {parts}."
    return f"{materials[0]['name']} materials for recycling."


def detect_materials(
    db: Session,
    image_url: Optional[str] = None,
    image_bytes: Optional[bytes] = None,
) -> Dict:
    """Run detection and enrich matches with their material type id and base price"""
    material_types = {m.name: m for m in db.query(MaterialType).all()}
    result = call_detection_workflow(image_url=image_url, image_bytes=image_bytes)
    parsed = parse_detection_result(result, material_types.keys())

    materials = []
    for name, count in parsed["counts"].items():
        material_type = material_types[name]
        materials.append({
            "name": name,
            "count": count,
            "material_type_id": material_type.id,
            "base_price": material_type.base_price,
        })

    logger.info(f"Detected {len(materials)} material types: {[m['name'] for m in materials]}")
    return {
        "materials": materials,
        "visualized_image_url": parsed["visualized_image_url"],
        "suggested_title": suggest_title([m["name"] for m in materials]),
        "suggested_description": suggest_description(materials),
    }


def calculate_combined_price(materials: Iterable[Dict]) -> float:
    """
    Weighted average price by quantity; custom prices win over base prices

    Each item reads "quantity", "custom_price" and "base_price". Returns 0 for
    an empty list or a zero total quantity.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for material in materials:
        weight = float(material.get("quantity") or 0)
        custom_price = material.get("custom_price")
        price = float(custom_price) if custom_price is not None else float(material.get("base_price") or 0)
        total_weight += weight
        weighted_sum += weight * price
    return weighted_sum / total_weight if total_weight > 0 else 0.0
