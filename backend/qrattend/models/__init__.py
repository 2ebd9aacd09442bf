# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from qrattend.models.person import Student  # noqa: F401  — doit précéder session
from qrattend.models.session import AttendanceSession, QRCode, SessionStudent  # noqa: F401
from qrattend.models.attendance import AttendanceRecord, AttendanceStatus  # noqa: F401
