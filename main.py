#!/usr/bin/env python3
"""
Main API server for Авто-ТКП: turns a client request into a DOCX commercial proposal
"""

import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import psutil
import uvicorn
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from src.config import Config
from src.catalog import ProductCatalog, CatalogError
from src.docx_builder import DocxBuilder, DocxBuildError
from src.llm_client import LLMClient, LLMError
from src.proposal_generator import (
    ProposalGenerator, ProposalError, NoRelevantProductsError, build_log_entry, log_filename
)
from src.error_messages import ErrorMessages
from src.security import sanitize_query_string, sanitize_error_message, validate_file_path
from src.async_io import save_json_async, file_exists_async

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize configuration
config = Config()
config.create_directories()

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

# Global instances
llm_client = None
product_catalog = None
proposal_generator = None


class GenerateRequest(BaseModel):
    query: str


class GenerateResponse(BaseModel):
    docx_base64: str
    total_cost: int
    items_count: int
    processing_time: float


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Initializing Авто-ТКП backend...")
    get_proposal_generator()
    logger.info("System ready")

    yield

    # Shutdown
    logger.info("Shutting down...")


def get_proposal_generator() -> ProposalGenerator:
    """Lazy initialization of the generation pipeline"""
    global llm_client, product_catalog, proposal_generator
    if proposal_generator is None:
        settings = config.load_llm_settings()
        llm_client = LLMClient(settings)
        product_catalog = ProductCatalog(llm_client, config.PRODUCTS_CACHE_PATH, config.MATERIALS_PATH)
        product_catalog.load_from_cache()
        proposal_generator = ProposalGenerator(
            llm_client, product_catalog, DocxBuilder(config.TEMPLATE_PATH), top_k=config.RETRIEVAL_TOP_K
        )
    return proposal_generator


# Create FastAPI app
app = FastAPI(
    title="Авто-ТКП API",
    description="Интеллектуальный генератор коммерческих предложений: запрос клиента -> DOCX",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware - Allow common Streamlit ports
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{port}" for port in range(8501, 8511)],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.get("/")
async def root():
    return {
        "message": "Авто-ТКП API",
        "status": "running",
        "endpoints": {
            "generate": "/generate",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    """Check system health, provider and data files"""
    try:
        memory = psutil.virtual_memory()
        generator = get_proposal_generator()

        return {
            "status": "healthy",
            "memory": {
                "available_gb": round(memory.available / (1024**3), 2),
                "percent_used": memory.percent,
            },
            "provider": generator.llm.provider,
            "model": generator.llm.model_name,
            "products_loaded": len(generator.catalog),
            "files": {
                "materials": await file_exists_async(config.MATERIALS_PATH),
                "products_cache": await file_exists_async(config.PRODUCTS_CACHE_PATH),
                "template": await file_exists_async(config.TEMPLATE_PATH),
            },
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


async def save_proposal_log(proposal) -> None:
    """Write the proposal log next to the application; failures are only logged"""
    path = config.LOG_DIR / log_filename()
    if not validate_file_path(path, config.LOG_DIR):
        logger.warning(f"ПРЕДУПРЕЖДЕНИЕ: недопустимый путь лог-файла: {path}")
        return
    try:
        await save_json_async(path, build_log_entry(proposal))
        logger.info(f"Лог-файл успешно сохранен: {path}")
    except OSError as e:
        logger.warning(f"ПРЕДУПРЕЖДЕНИЕ: не удалось сохранить лог-файл: {e}")


@app.post("/generate", response_model=GenerateResponse)
@limiter.limit(Config.GENERATE_RATE_LIMIT)
async def generate(request: Request, generate_request: GenerateRequest):
    """Generate a ТКП for a client request and return it as base64 DOCX"""
    query = sanitize_query_string(generate_request.query, config.MAX_QUERY_LENGTH)
    if not query:
        raise HTTPException(status_code=400, detail=ErrorMessages.EMPTY_QUERY)

    generator = get_proposal_generator()
    context = {'provider': generator.llm.provider, 'model_name': generator.llm.model_name}
    start_time = time.time()

    try:
        logger.info(f"Client request: {query}")
        proposal = await run_in_threadpool(generator.build_proposal, query)
        # The log is kept even when rendering fails
        await save_proposal_log(proposal)
        proposal = await run_in_threadpool(generator.render, proposal)
    except NoRelevantProductsError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (ProposalError, CatalogError, LLMError, DocxBuildError) as e:
        logger.error(f"Error generating proposal: {e}")
        raise HTTPException(status_code=500, detail=ErrorMessages.get_specific_error(e, context))
    except Exception as e:
        logger.exception("Unexpected error generating proposal")
        raise HTTPException(status_code=500, detail=sanitize_error_message(e, show_details=config.DEBUG))

    return GenerateResponse(
        docx_base64=proposal.docx_base64,
        total_cost=proposal.total_cost,
        items_count=len(proposal.items),
        processing_time=round(time.time() - start_time, 3),
    )


if __name__ == "__main__":
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
