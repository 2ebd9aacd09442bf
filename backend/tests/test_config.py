"""
Tests de validation de la configuration (échec immédiat au démarrage).
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from qrattend.config import Settings


def test_valeurs_par_defaut():
    config = Settings(_env_file=None)

    assert config.qr_validity == timedelta(hours=3)
    assert config.grace_period == timedelta(minutes=15)
    assert config.CODE_MIN == 100000
    assert config.CODE_MAX == 999999


def test_niveau_de_log_normalise():
    assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"GRACE_PERIOD_MINUTES": 0},
        {"QR_VALIDITY_HOURS": -1},
        {"GRACE_PERIOD_MINUTES": 240, "QR_VALIDITY_HOURS": 3},
        {"CODE_MIN": 999999, "CODE_MAX": 100000},
        {"CODE_MIN": 99999},
        {"CODE_MAX": 1000000},
        {"CODE_MIN": -5, "CODE_MAX": 10},
        {"CODE_MAX_ATTEMPTS": 0},
        {"LOG_LEVEL": "VERBOSE"},
        {"DATABASE_URL": "  "},
    ],
)
def test_configuration_incoherente_refusee(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_lecture_depuis_l_environnement(monkeypatch):
    monkeypatch.setenv("GRACE_PERIOD_MINUTES", "10")
    monkeypatch.setenv("AUTO_CLOSE_ENABLED", "true")

    config = Settings(_env_file=None)

    assert config.grace_period == timedelta(minutes=10)
    assert config.AUTO_CLOSE_ENABLED is True
