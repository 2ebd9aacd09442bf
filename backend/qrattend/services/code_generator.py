"""
Génération des codes numériques à 6 chiffres saisissables par les élèves.

Chaque tirage est vérifié contre les codes déjà enregistrés ; le nombre de
tirages est borné car l'espace (900 000 valeurs) se remplit avec l'usage.
"""

import logging
import random
from typing import Callable, Optional

from qrattend.exceptions import ResourceExhaustedError

logger = logging.getLogger(__name__)


class CodeGenerator:
    def __init__(
        self,
        is_taken: Callable[[str], bool],
        *,
        low: int = 100000,
        high: int = 999999,
        max_attempts: int = 50,
        rng: Optional[random.Random] = None,
    ):
        if low >= high:
            raise ValueError("Intervalle de codes invalide.")
        if max_attempts < 1:
            raise ValueError("Au moins une tentative de génération est requise.")
        self._is_taken = is_taken
        self._low = low
        self._high = high
        self._max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    def generate(self) -> str:
        """
        Retourne un code libre.
        Lève ResourceExhaustedError après max_attempts collisions successives.
        """
        for attempt in range(1, self._max_attempts + 1):
            code = str(self._rng.randint(self._low, self._high))
            if not self._is_taken(code):
                return code
            logger.debug("Collision sur le code %s (tentative %d)", code, attempt)

        logger.error("Aucun code libre trouvé après %d tentatives", self._max_attempts)
        raise ResourceExhaustedError(
            f"Impossible de générer un code unique après {self._max_attempts} tentatives."
        )
