"""
Rendu des QR codes en PNG et stockage de l'image.

Le cœur ne conserve que la référence (URL) renvoyée par le stockage, jamais les octets.
LocalImageStore écrit dans un répertoire servi statiquement ; un stockage objet
distant peut le remplacer en respectant la même interface.
"""

import io
import logging
from pathlib import Path
from typing import Protocol

import qrcode

logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    def save(self, name: str, data: bytes) -> str:
        """Enregistre l'image et retourne sa référence publique."""
        ...


class LocalImageStore:
    """Stockage des images QR sur disque local."""

    def __init__(self, directory: str, base_url: str):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def save(self, name: str, data: bytes) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / name).write_bytes(data)
        return f"{self.base_url}/{name}"


def generate_qr_image(payload: str) -> bytes:
    """Génère une image PNG du QR code encodant le contenu donné."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def build_target_url(template: str, *, qrcode_id: str, code: str, session_id: str) -> str:
    """URL encodée dans le QR code (placeholders {qrcode_id}, {code}, {session_id})."""
    return template.format(qrcode_id=qrcode_id, code=code, session_id=session_id)


def publish_qr_image(store: ImageStore, target_url: str, name: str) -> str:
    """Génère l'image du QR code et la confie au stockage. Retourne la référence."""
    image_url = store.save(name, generate_qr_image(target_url))
    logger.info("Image QR %s publiée : %s", name, image_url)
    return image_url
