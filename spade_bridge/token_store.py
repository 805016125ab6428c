from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from spade_bridge.models import ShopInstallation


class TokenStore(Protocol):
    """Per-shop Admin API credentials, keyed by normalized shop domain."""

    def get(self, shop_domain: str) -> Optional[str]: ...

    def set(self, shop_domain: str, token: str, *, scopes: str = "") -> None: ...

    def delete(self, shop_domain: str) -> None: ...


class ShopTokenRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _find(self, shop_domain: str) -> Optional[ShopInstallation]:
        stmt = select(ShopInstallation).where(ShopInstallation.shop_domain == shop_domain)
        return self.session.scalars(stmt).first()

    def get(self, shop_domain: str) -> Optional[str]:
        installation = self._find(shop_domain)
        if installation is None or installation.uninstalled_at is not None:
            return None
        return installation.admin_access_token or None

    def set(self, shop_domain: str, token: str, *, scopes: str = "") -> None:
        installation = self._find(shop_domain)
        if installation is None:
            installation = ShopInstallation(
                shop_domain=shop_domain,
                admin_access_token=token,
                scopes=scopes,
                uninstalled_at=None,
            )
            self.session.add(installation)
        else:
            installation.admin_access_token = token
            installation.scopes = scopes
            installation.uninstalled_at = None
            installation.updated_at = datetime.now(timezone.utc)
        self.session.commit()

    def delete(self, shop_domain: str) -> None:
        installation = self._find(shop_domain)
        if installation is None:
            return
        installation.uninstalled_at = datetime.now(timezone.utc)
        installation.admin_access_token = ""
        installation.updated_at = datetime.now(timezone.utc)
        self.session.commit()
