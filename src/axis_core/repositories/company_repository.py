"""Company, tax configuration and API key lookups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from axis_core.db.models.api_key import ApiKey
from axis_core.db.models.company import CompanyTaxConfig
from axis_core.domain.enums import Currency


class CompanyRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_tax_config(
        self,
        company_id: str,
        currency: Currency,
    ) -> CompanyTaxConfig | None:
        statement = select(CompanyTaxConfig).where(
            CompanyTaxConfig.company_id == company_id,
            CompanyTaxConfig.currency == currency,
        )
        return self._session.scalar(statement)

    def get_api_key(self, public_key: str) -> ApiKey | None:
        statement = (
            select(ApiKey)
            .options(joinedload(ApiKey.company))
            .where(ApiKey.public_key == public_key)
        )
        return self._session.scalar(statement)
