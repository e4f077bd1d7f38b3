"""
Cliente do serviço externo de análise em linguagem natural (Gemini).

Recebe os fatos já agregados dos devis (todos na mesma moeda de
exibição) e devolve uma análise em markdown. Qualquer falha é
convertida em uma mensagem fixa visível ao usuário; nada é propagado
e nenhum dado armazenado é afetado.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import requests

from devis.config import DEFAULTS, GEMINI_API_KEY
from devis.infra.logger import log_analysis_event

API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

MSG_NO_API_KEY = (
    "Erreur : La clé API Gemini n'est pas configurée. L'analyse ne peut pas être effectuée."
)
MSG_NO_QUOTES = "Aucun devis à analyser. Veuillez d'abord ajouter quelques devis."
MSG_FAILURE = (
    "Une erreur est survenue lors de l'analyse des devis. "
    "Veuillez consulter les logs pour plus de détails."
)

PROMPT = """
En tant qu'expert en analyse commerciale et en chaîne d'approvisionnement, analyse les données de devis suivantes provenant de fournisseurs.
Fournis une analyse concise et exploitable en français pour m'aider à prendre une décision.

{note}

L'analyse doit inclure :
1.  Un résumé global des options disponibles.
2.  Identification du devis et du mode d'expédition le plus rentable au coût total rendu (tout inclus).
3.  Identification du devis le plus cher au total.
4.  Une recommandation sur le meilleur rapport qualité-prix, en tenant compte du coût par pièce tout inclus.
5.  Formate ta réponse en utilisant Markdown pour une meilleure lisibilité (titres, listes à puces).

Données des devis :
{data}
"""


def build_prompt(payload: Dict[str, Any], instruction: str = PROMPT) -> str:
    return instruction.format(
        note=payload.get("note", ""),
        data=json.dumps(payload, ensure_ascii=False, indent=2),
    )


class GeminiSummarizer:
    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = DEFAULTS.summarizer_model,
        timeout: float = DEFAULTS.summarizer_timeout,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def _post(self, prompt: str) -> Dict[str, Any]:
        resp = requests.post(
            API_URL.format(model=self.model),
            params={"key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    def _extract_text(body: Dict[str, Any]) -> str:
        parts = body["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts).strip()
        if not text:
            raise ValueError("empty response")
        return text

    def summarize(self, payload: Dict[str, Any], instruction: str = PROMPT) -> str:
        """Devolve a análise em markdown, ou uma mensagem fixa em caso de falha."""
        if not self.api_key:
            log_analysis_event("skipped", level="warning", reason="missing_api_key")
            return MSG_NO_API_KEY
        if not payload.get("devis"):
            return MSG_NO_QUOTES

        log_analysis_event("request", model=self.model, quotes=len(payload["devis"]))
        try:
            text = self._extract_text(self._post(build_prompt(payload, instruction)))
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            log_analysis_event("failed", level="error", error=str(e))
            return MSG_FAILURE
        log_analysis_event("success", chars=len(text))
        return text
