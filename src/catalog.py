"""Product catalogue: cache loading, LLM parsing of the raw price list and keyword retrieval"""
import json
import logging
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, TypeAdapter, ValidationError
from src.config import Config
from src.llm_client import LLMClient, LLMError
from src.prompts import MATERIALS_PARSING_PROMPT, KEYWORDS_PROMPT

logger = logging.getLogger(__name__)

# Characters treated as separators by the fallback tokenizer
SEPARATORS = ',.()/\\[]-"'


class CatalogError(Exception):
    """Raised when the product catalogue cannot be loaded"""


@dataclass
class Product:
    id: int
    name: str
    price: int

    def to_dict(self) -> Dict:
        return asdict(self)


class ParsedProduct(BaseModel):
    name: str
    price: int


class KeywordResponse(BaseModel):
    keywords: List[str] = []


def tokenize(text: str) -> List[str]:
    """Split a request into lowercase words, dropping punctuation"""
    lowered = text.lower()
    for separator in SEPARATORS:
        lowered = lowered.replace(separator, " ")
    return lowered.split()


class ProductCatalog:
    """Holds the products offered in proposals"""

    def __init__(
        self,
        llm: LLMClient,
        cache_path: Path = Config.PRODUCTS_CACHE_PATH,
        materials_path: Path = Config.MATERIALS_PATH,
    ):
        self.llm = llm
        self.cache_path = Path(cache_path)
        self.materials_path = Path(materials_path)
        self.products: List[Product] = []
        self.product_map: Dict[int, Product] = {}
        self._load_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.products)

    def get(self, product_id: int) -> Optional[Product]:
        return self.product_map.get(product_id)

    def load_from_cache(self) -> bool:
        """Load products.json; returns False when it is missing or corrupt"""
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
            products = [Product(id=int(p["id"]), name=str(p["name"]), price=int(p["price"])) for p in data]
        except (OSError, ValueError, KeyError, TypeError):
            logger.info(
                f"Файл '{self.cache_path}' не найден или поврежден. "
                f"Данные будут загружены из '{self.materials_path}' при первом запросе."
            )
            return False

        self.products = products
        self.product_map = {p.id: p for p in products}
        logger.info(f"Успешно загружены данные о продуктах из кэша '{self.cache_path}' ({len(products)} шт.).")
        return True

    def ensure_loaded(self) -> None:
        """Parse materials.csv through the LLM once and cache the result"""
        with self._load_lock:
            if self.products:
                return

            logger.info(f"Данные не загружены, запускаю процесс парсинга '{self.materials_path}'...")
            try:
                raw_data = self.materials_path.read_text(encoding="utf-8")
            except OSError as e:
                raise CatalogError(f"не удалось прочитать '{self.materials_path.name}': {e}") from e

            try:
                parsed_json = self.llm.call_for_json(MATERIALS_PARSING_PROMPT.format(materials=raw_data))
            except LLMError as e:
                raise CatalogError(f"ошибка парсинга файла через LLM: {e}") from e

            try:
                parsed = TypeAdapter(List[ParsedProduct]).validate_json(parsed_json)
            except ValidationError as e:
                raise CatalogError(
                    f"LLM вернула невалидный JSON после парсинга: {e}. Ответ: {parsed_json}"
                ) from e

            products = [Product(id=i + 1, name=p.name, price=p.price) for i, p in enumerate(parsed)]
            try:
                self.cache_path.parent.mkdir(parents=True, exist_ok=True)
                self.cache_path.write_text(
                    json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False),
                    encoding="utf-8",
                )
            except OSError as e:
                raise CatalogError(f"не удалось сохранить кэш в '{self.cache_path.name}': {e}") from e

            logger.info(f"Данные успешно распарсены и сохранены в '{self.cache_path}'.")
            self.load_from_cache()
            if not self.products:
                raise CatalogError("не удалось загрузить данные в память даже после парсинга")

    def extract_keywords(self, query: str) -> List[str]:
        logger.info("RAG Этап 1: Извлечение ключевых слов через LLM...")
        try:
            json_response = self.llm.call_for_json(KEYWORDS_PROMPT.format(query=query))
        except LLMError as e:
            raise LLMError(f"LLM не смогла извлечь ключевые слова: {e}") from e

        try:
            keywords = KeywordResponse.model_validate_json(json_response).keywords
        except ValidationError as e:
            raise LLMError(
                f"не удалось распарсить JSON с ключевыми словами: {e}. Ответ был: {json_response}"
            ) from e

        logger.info(f"LLM извлекла ключевые слова: {keywords}")
        return [k.lower() for k in keywords if k.strip()]

    def retrieve_relevant(self, query: str, top_k: int = Config.RETRIEVAL_TOP_K) -> List[Product]:
        """Rank products by how many request keywords occur in their names"""
        try:
            keywords = self.extract_keywords(query)
        except LLMError as e:
            logger.warning(
                f"Не удалось извлечь ключевые слова через LLM, переключаюсь на простой поиск. Ошибка: {e}"
            )
            keywords = tokenize(query)

        if not keywords:
            return []

        scored = []
        for product in self.products:
            name = product.name.lower()
            score = sum(1 for keyword in keywords if keyword in name)
            if score > 0:
                scored.append((score, product))

        scored.sort(key=lambda pair: (-pair[0], len(pair[1].name)))
        relevant = [product for _, product in scored[:top_k]]

        logger.info(f"RAG Этап 2: Найдено {len(relevant)} товаров по ключевым словам. Передаю для финальной сборки.")
        return relevant
