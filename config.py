"""
Configuration for the CRM client and the local dummy vendor API.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Vendor endpoints
PRODUCTION_URL = "https://app.continuitycrm.com/api/"
STAGING_URL = os.getenv("CRM_STAGING_URL", "https://staging.continuitycrm.com/api/")

# Client Settings
CRM_API_URL = os.getenv("CRM_API_URL", PRODUCTION_URL)
CRM_API_KEY = os.getenv("CRM_API_KEY")
CRM_TIMEOUT = float(os.getenv("CRM_TIMEOUT", "30"))

# Dummy vendor API (local development)
DUMMY_API_PORT = int(os.getenv("DUMMY_API_PORT", "5001"))


if __name__ == "__main__":
    print(f"API URL: {CRM_API_URL}")
    print(f"Timeout: {CRM_TIMEOUT}")
    # print(f"API Key set: {bool(CRM_API_KEY)}")
