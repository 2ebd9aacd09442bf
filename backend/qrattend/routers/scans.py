"""
Router pour les QR codes : consultation et scan par les élèves.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qrattend.database import get_db
from qrattend.dependencies import get_current_student_id, get_evaluator
from qrattend.schemas.qrcode import QRCodeResponse
from qrattend.schemas.scan import ScanCodeRequest, ScanResult
from qrattend.services import session_service
from qrattend.services.attendance_evaluator import AttendanceEvaluator

router = APIRouter(prefix="/api/v1", tags=["Scans"])


@router.get("/qrcodes/{qrcode_id}", response_model=QRCodeResponse, summary="Détail d'un QR code")
def get_qr_code(qrcode_id: uuid.UUID, db: Session = Depends(get_db)):
    """Retourne le code, l'expiration et l'image d'un QR code (404 si inconnu)."""
    return session_service.get_qr_code(db, qrcode_id)


@router.post("/scan/{qrcode_id}", response_model=ScanResult, summary="Scanner un QR code")
def scan_qr_code(
    qrcode_id: uuid.UUID,
    evaluator: AttendanceEvaluator = Depends(get_evaluator),
    student_id: uuid.UUID = Depends(get_current_student_id),
):
    """
    Enregistre la présence de l'élève authentifié.

    Issues possibles (200) : PRESENT, LATE, EXPIRED, ALREADY_RECORDED.
    Un second scan ne modifie jamais le statut. Retourne 404 si le QR code est inconnu.
    """
    return evaluator.scan(qrcode_id, student_id)


@router.post("/scan", response_model=ScanResult, summary="Saisir le code à 6 chiffres")
def scan_code(
    data: ScanCodeRequest,
    evaluator: AttendanceEvaluator = Depends(get_evaluator),
    student_id: uuid.UUID = Depends(get_current_student_id),
):
    """Même comportement que le scan, à partir du code affiché sous le QR code."""
    return evaluator.scan_code(data.code, student_id)
