"""
factory - Composition root for the DMD companion.

ALL dependency wiring happens here. No other module constructs its own
dependencies. The CLI adapter (and tests that want the real wiring) call
this factory to get fully configured services.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup: migrations

    ctx = SessionContext(language=config.language)
    await factory.create_authentication_service().restore(ctx)
    feed = await factory.create_content_service().load_articles(ctx, months=3)
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.ports import TextGeneratorPort
from infrastructure.auth.static_authenticator import StaticAllowListAuthenticator
from infrastructure.config import Settings
from infrastructure.llm.generator import LangChainTextGenerator
from infrastructure.llm.llm_builder import build_llm
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.kv_store import SQLiteKeyValueStore
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.user_store import KeyValueUserStore
from infrastructure.providers.clinical_trials import ClinicalTrialsSource
from infrastructure.providers.fda_drugs import StaticDrugSource
from infrastructure.providers.pubmed import PubMedArticleSource
from application.services.authentication import AuthenticationService
from application.services.content import ContentFeedService
from application.services.inquiries import InquiryService
from application.services.interpreter import InterpreterService
from application.services.profile import ProfileService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create services as needed.
    """

    def __init__(self, config: Settings, generator: Optional[TextGeneratorPort] = None):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._user_store = KeyValueUserStore(
            SQLiteKeyValueStore(self._connection),
            current_user_key=config.current_user_key,
            user_key_prefix=config.user_key_prefix,
        )

        # Built on first use: constructing a provider client needs API keys
        # that login/profile commands never touch.
        self._generator = generator
        self._content_service: Optional[ContentFeedService] = None
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    async def initialize(self) -> None:
        """One-time startup: create the key-value table if needed."""
        await run_migrations(self._connection)
        self._initialized = True
        logger.info("ServiceFactory ready (db=%s)", self._connection.db_path)

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_authentication_service(self) -> AuthenticationService:
        self._ensure_initialized()
        return AuthenticationService(
            authenticator=StaticAllowListAuthenticator(),
            user_store=self._user_store,
            login_latency=self._latency(self._config.login_latency),
            logout_latency=self._latency(self._config.logout_latency),
        )

    def create_profile_service(self) -> ProfileService:
        self._ensure_initialized()
        return ProfileService(
            user_store=self._user_store,
            save_latency=self._latency(self._config.profile_save_latency),
        )

    def create_inquiry_service(self) -> InquiryService:
        self._ensure_initialized()
        return InquiryService(user_store=self._user_store)

    def create_content_service(self) -> ContentFeedService:
        """Shared per factory so view generations span calls."""
        self._ensure_initialized()
        if self._content_service is None:
            self._content_service = ContentFeedService(
                article_source=PubMedArticleSource(
                    base_url=self._config.pubmed_base_url,
                    disease_term=self._config.disease_term,
                    max_results=self._config.pubmed_max_results,
                    api_key=self._config.pubmed_api_key,
                    email=self._config.pubmed_email,
                    timeout=self._config.request_timeout,
                ),
                trial_source=ClinicalTrialsSource(
                    base_url=self._config.trials_base_url,
                    condition=self._config.disease_term,
                    page_size=self._config.trials_page_size,
                    timeout=self._config.request_timeout,
                ),
                drug_source=StaticDrugSource(),
            )
        return self._content_service

    def create_interpreter_service(self) -> InterpreterService:
        """Raises ValueError when the configured LLM provider lacks credentials."""
        self._ensure_initialized()
        return InterpreterService(
            generator=self._get_generator(),
            inquiries=self.create_inquiry_service(),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_generator(self) -> TextGeneratorPort:
        if self._generator is None:
            llm = build_llm(
                provider=self._config.llm_provider,
                model=self._config.active_llm_model,
                temperature=self._config.llm_temperature,
                ollama_base_url=self._config.ollama_base_url,
                openai_api_key=self._config.openai_api_key,
                groq_api_key=self._config.groq_api_key,
                chat_model=True,
            )
            self._generator = LangChainTextGenerator(llm)
        return self._generator

    def _latency(self, seconds: float) -> float:
        return seconds if self._config.simulate_latency else 0.0

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
