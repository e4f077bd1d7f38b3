# devis/config.py
"""
Configurações globais e valores padrão do gestionnaire de devis.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.getenv("DEVIS_DB", os.path.join(os.getcwd(), "devis.db"))

# Fonte das taxas de câmbio (pivot EUR, formato frankfurter.app)
RATES_URL = os.getenv("DEVIS_RATES_URL", "https://api.frankfurter.app/latest?from=EUR")

# Chave da API de sumarização (Gemini)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    display_currency: str = os.getenv("DEVIS_DISPLAY_CURRENCY", "EUR")
    rates_timeout: float = 10.0  # segundos
    summarizer_model: str = "gemini-2.5-flash"
    summarizer_timeout: float = 60.0  # segundos


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
