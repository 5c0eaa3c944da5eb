import os


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")

    # Pinned so webhook payload shapes don't shift under us when the
    # account's default API version is bumped.
    STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION", "2024-04-10")

    # --- Purchase record ---
    # Document id under users/{uid}/purchases/. The frontend listens on it.
    PURCHASE_KIND = os.environ.get("PURCHASE_KIND", "main-course")

    # --- Firebase ---
    # Path to a service-account JSON file. When unset, Application Default
    # Credentials are used (Cloud Run / Cloud Functions / gcloud auth).
    FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS")
    FIREBASE_PROJECT_ID = os.environ.get("FIREBASE_PROJECT_ID")

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "STRIPE_SECRET_KEY",
            "STRIPE_WEBHOOK_SECRET",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True


class TestConfig(Config):
    """Testing — fake secrets, Firestore injected by the test suite."""

    TESTING = True
    DEBUG = True
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    PURCHASE_KIND = "main-course"
    FIREBASE_CREDENTIALS = None
    FIREBASE_PROJECT_ID = "demo-test"

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
