from siwe_auth.core.config import Settings
from siwe_auth.db.base import Base
from siwe_auth.db.session import build_engine
from siwe_auth.models import user  # noqa: F401  ensure models are imported


def main() -> None:
    engine = build_engine(Settings())
    Base.metadata.create_all(bind=engine)
    print("✅ Created tables.")


if __name__ == "__main__":
    main()
