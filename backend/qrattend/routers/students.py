"""
Router pour les élèves (roster global).
GET  /api/v1/students — listage
POST /api/v1/students — création
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qrattend.database import get_db
from qrattend.models.person import Student
from qrattend.schemas.student import StudentCreate, StudentResponse

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=List[StudentResponse], summary="Lister tous les élèves")
def list_students(db: Session = Depends(get_db)):
    """Retourne tous les élèves triés alphabétiquement par nom puis prénom."""
    students = db.execute(
        select(Student).order_by(Student.last_name, Student.first_name)
    ).scalars().all()
    return students


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève")
def create_student(data: StudentCreate, db: Session = Depends(get_db)):
    """Crée un élève. Retourne 409 si l'email est déjà utilisé."""
    student = Student(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
    )
    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Un élève avec cet email existe déjà.")
    db.refresh(student)
    return student
