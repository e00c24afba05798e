from sqlalchemy import select
from sqlalchemy.orm import Session

from siwe_auth.core.config import Settings
from siwe_auth.db.session import build_engine, build_session_factory
from siwe_auth.models.user import User
from siwe_auth.services.account_resolver import AccountResolver


def main() -> None:
    settings = Settings()
    db: Session = build_session_factory(build_engine(settings))()
    try:
        addresses = list(db.scalars(select(User.address).where(User.handle.is_(None))).all())
        resolver = AccountResolver(db, handle_length=settings.handle_length)
        for address in addresses:
            handle = resolver.resolve_handle(address)
            print(f"{address} -> {handle}")
        print(f"✅ Backfilled {len(addresses)} handles.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
