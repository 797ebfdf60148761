import logging
import os
from typing import Optional

import firebase_admin
from dotenv import load_dotenv
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

# Load the .env file
load_dotenv()


def _credentials_from_env() -> dict:
    return {
        "type": os.getenv("FIREBASE_TYPE", "service_account"),
        "project_id": os.getenv("FIREBASE_PROJECT_ID"),
        "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
        "private_key": (os.getenv("FIREBASE_PRIVATE_KEY") or "").replace("\\n", "\n"),
        "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
        "client_id": os.getenv("FIREBASE_CLIENT_ID"),
        "auth_uri": os.getenv("FIREBASE_AUTH_URI"),
        "token_uri": os.getenv("FIREBASE_TOKEN_URI"),
        "auth_provider_x509_cert_url": os.getenv("FIREBASE_AUTH_PROVIDER_X509_CERT_URL"),
        "client_x509_cert_url": os.getenv("FIREBASE_CLIENT_X509_CERT_URL"),
        "universe_domain": os.getenv("FIREBASE_UNIVERSE_DOMAIN"),
    }


def get_firestore_client() -> Optional[object]:
    """Return a Firestore client, or None when Firebase is not configured.

    Firestore only mirrors notifications; the service runs without it.
    """
    if not os.getenv("FIREBASE_PROJECT_ID"):
        return None

    if not firebase_admin._apps:
        try:
            cred = credentials.Certificate(_credentials_from_env())
            firebase_admin.initialize_app(cred)
            logger.info("Connected to Firebase project %s", os.getenv("FIREBASE_PROJECT_ID"))
        except Exception:
            logger.exception("Could not connect to Firebase, notifications stay local")
            return None

    return firestore.client()
