"""Two-stage LLM pipeline turning a client request into a priced DOCX proposal"""
import json
import time
import base64
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ValidationError
from src.catalog import ProductCatalog
from src.config import Config
from src.docx_builder import DocxBuilder
from src.llm_client import LLMClient, LLMError
from src.prompts import PLANNING_PROMPT, FINAL_JSON_PROMPT

logger = logging.getLogger(__name__)


class ProposalError(Exception):
    """Raised when a proposal cannot be produced for a request"""


class NoRelevantProductsError(ProposalError):
    """Raised when retrieval finds nothing matching the request"""


class FoundItem(BaseModel):
    id: int
    quantity: int


class FoundItemsResponse(BaseModel):
    found_items: List[FoundItem] = []


@dataclass
class ProposalItem:
    name: str
    quantity: int
    price: int
    subtotal: int


@dataclass
class Proposal:
    query: str
    items: List[ProposalItem] = field(default_factory=list)
    total_cost: int = 0
    docx_base64: str = ""


def build_log_entry(proposal: Proposal) -> Dict[str, Any]:
    """JSON log record stored next to the application for every proposal"""
    return {
        "query": proposal.query,
        "response": {
            "found_items": [asdict(item) for item in proposal.items],
            "total_cost": proposal.total_cost,
        },
    }


def log_filename(timestamp: Optional[float] = None) -> str:
    return f"log_{int(timestamp if timestamp is not None else time.time())}.json"


class ProposalGenerator:
    """Builds a ТКП for a free-text client request"""

    def __init__(
        self,
        llm: LLMClient,
        catalog: ProductCatalog,
        docx_builder: DocxBuilder,
        top_k: int = Config.RETRIEVAL_TOP_K,
    ):
        self.llm = llm
        self.catalog = catalog
        self.docx_builder = docx_builder
        self.top_k = top_k

    def generate(self, client_request: str) -> Proposal:
        """Price the request and render its document"""
        return self.render(self.build_proposal(client_request))

    def build_proposal(self, client_request: str) -> Proposal:
        """Retrieval and both LLM stages; the result has no document yet"""
        self.catalog.ensure_loaded()

        relevant = self.catalog.retrieve_relevant(client_request, self.top_k)
        if not relevant:
            raise NoRelevantProductsError(
                f"не удалось найти ни одного релевантного товара для запроса: '{client_request}'. "
                "Попробуйте переформулировать запрос"
            )
        products_json = json.dumps([p.to_dict() for p in relevant], ensure_ascii=False)

        logger.info("Этап 1 (RAG): Запрос плана комплектации...")
        try:
            plan = self.llm.call_for_text(
                PLANNING_PROMPT.format(products_json=products_json, query=client_request)
            )
        except LLMError as e:
            raise ProposalError(f"ошибка на этапе 1 (планирование): {e}") from e
        logger.info(f"Получен план:\n---\n{plan}\n---")

        logger.info("Этап 2 (RAG): Запрос финального JSON...")
        try:
            response_json = self.llm.call_for_json(
                FINAL_JSON_PROMPT.format(plan=plan, products_json=products_json)
            )
        except LLMError as e:
            raise ProposalError(f"ошибка на этапе 2 (форматирование JSON): {e}") from e

        try:
            found = FoundItemsResponse.model_validate_json(response_json).found_items
        except ValidationError as e:
            raise ProposalError(f"LLM вернула невалидный JSON: {e}. Ответ: {response_json}") from e

        proposal = Proposal(query=client_request)
        for item in found:
            product = self.catalog.get(item.id)
            if product is None:
                logger.warning(f"ПРЕДУПРЕЖДЕНИЕ: LLM вернула несуществующий ID: {item.id}. Позиция пропущена.")
                continue
            subtotal = product.price * item.quantity
            proposal.items.append(
                ProposalItem(name=product.name, quantity=item.quantity, price=product.price, subtotal=subtotal)
            )
            proposal.total_cost += subtotal

        return proposal

    def render(self, proposal: Proposal) -> Proposal:
        logger.info("Генерация DOCX файла с таблицей...")
        docx_bytes = self.docx_builder.build(proposal.items, proposal.total_cost)
        proposal.docx_base64 = base64.b64encode(docx_bytes).decode("ascii")

        logger.info(f"DOCX файл успешно создан: {len(proposal.items)} позиций, итого {proposal.total_cost} руб.")
        return proposal
