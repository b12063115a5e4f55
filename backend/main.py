"""
FastAPI application - Umrah/Hajj client paperwork extraction
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import ALLOWED_EXTENSIONS, CORS_ORIGINS, LOG_LEVEL
from database import get_db, init_db
from models import Client
from ocr_service import ConversionError, ExtractionError, OCRService
from photo_locator import crop_photo
from schemas import (
    ClientCreate, ClientListResponse, ClientResponse, ClientUpdate,
    CropRequest, CropResponse, ErrorResponse, ExtractedRecordResponse
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = "Failed to extract data from the document"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    init_db()
    logger.info("Database initialized")
    logger.info("OCR service ready (models load on first upload)")
    yield


app = FastAPI(
    title="Umrah Paperwork Extraction API",
    description="Extracts client identity fields and photos from visas and passports",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ocr_service = OCRService()


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "ok",
        "message": "Paperwork extraction API is running",
        "version": "1.0.0"
    }


@app.post(
    "/api/extract",
    response_model=ExtractedRecordResponse,
    responses={422: {"model": ErrorResponse}},
)
async def extract_document(file: UploadFile = File(...)):
    """
    Extract client fields and photo from an uploaded visa or passport (PDF or image).
    """
    filename = file.filename or ""
    file_ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if file_ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        record = await run_in_threadpool(
            ocr_service.process_document, content, filename, file.content_type
        )
    except (ConversionError, ExtractionError) as e:
        logger.error(f"Extraction failed for {filename}: {e}")
        error = ErrorResponse(
            error=type(e).__name__,
            message=EXTRACTION_FAILED_MESSAGE,
            details={"reason": str(e)},
        )
        return JSONResponse(status_code=422, content=error.model_dump())

    return ExtractedRecordResponse(**record.to_dict())


@app.post("/api/photo/crop", response_model=CropResponse)
async def crop_client_photo(request: CropRequest):
    """
    Crop a client photo to the region selected by staff
    """
    pixel_crop = {"x": request.x, "y": request.y, "width": request.width, "height": request.height}
    try:
        image = await run_in_threadpool(
            crop_photo,
            request.image,
            pixel_crop,
            request.rotation,
            request.flip_horizontal,
            request.flip_vertical,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CropResponse(image=image)


@app.get("/api/clients", response_model=ClientListResponse)
async def get_clients(
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Get client history, newest first, optionally filtered by name, passport number or email
    """
    query = db.query(Client)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            Client.full_name.ilike(pattern)
            | Client.passport_number.ilike(pattern)
            | Client.email.ilike(pattern)
        )

    total = query.count()
    clients = query.order_by(Client.created_at.desc()).offset(skip).limit(limit).all()

    return ClientListResponse(clients=clients, total=total)


@app.post("/api/clients", response_model=ClientResponse, status_code=201)
async def create_client(payload: ClientCreate, db: Session = Depends(get_db)):
    """
    Save a (possibly edited) client record to history
    """
    client = Client(**payload.model_dump())
    db.add(client)
    db.commit()
    db.refresh(client)

    logger.info(f"Saved client {client.id}")
    return client


@app.get("/api/clients/{client_id}", response_model=ClientResponse)
async def get_client(client_id: str, db: Session = Depends(get_db)):
    """
    Get a saved client
    """
    client = db.query(Client).filter(Client.id == client_id).first()

    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    return client


@app.put("/api/clients/{client_id}", response_model=ClientResponse)
async def update_client(client_id: str, payload: ClientUpdate, db: Session = Depends(get_db)):
    """
    Update fields of a saved client (manual correction)
    """
    client = db.query(Client).filter(Client.id == client_id).first()

    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if field_name == "full_name" and value is None:
            continue  # name is required
        setattr(client, field_name, value)

    db.commit()
    db.refresh(client)

    return client


@app.delete("/api/clients/{client_id}")
async def delete_client(client_id: str, db: Session = Depends(get_db)):
    """
    Delete a saved client
    """
    client = db.query(Client).filter(Client.id == client_id).first()

    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    db.delete(client)
    db.commit()

    return {"message": "Client deleted successfully"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
