#!/usr/bin/env python3
"""
Smartcar API Authentication Helper

This script helps you authenticate with the Smartcar API for the first time.
It will:
1. Generate an authorization URL
2. Guide you through the browser authentication process
3. Exchange the authorization code for tokens
4. Save tokens for future use

Usage:
    smartcar-authenticate
    smartcar-authenticate --tokens my_tokens.json --scope read_odometer read_location

Requirements:
    - SMARTCAR_CLIENT_ID, SMARTCAR_CLIENT_SECRET and SMARTCAR_REDIRECT_URI
      in the environment or a .env file
    - Web browser access to Smartcar Connect
"""

import argparse
import json
import logging
import os
import webbrowser
from typing import List, Optional

from .auth import AuthClient, is_expired
from .client import SmartcarClient
from .config import SmartcarConfig
from .exceptions import SmartcarError
from .models import Credential

DEFAULT_TOKEN_PATH = "tokens.json"

logger = logging.getLogger(__name__)


def save_credential(credential: Credential, path: str = DEFAULT_TOKEN_PATH):
    """Save a credential to a JSON file"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(credential.to_dict(), f, indent=2)
    logger.debug("💾 Tokens saved to %s", path)


def load_credential(path: str = DEFAULT_TOKEN_PATH) -> Optional[Credential]:
    """Load a credential saved by ``save_credential``, if there is one"""
    if not os.path.exists(path):
        logger.debug("Token file %s does not exist", path)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return Credential.from_dict(json.load(f))
    except (IOError, json.JSONDecodeError, KeyError, ValueError) as e:
        logger.warning("Failed to load tokens from %s: %s", path, str(e))
        return None


def prompt_callback_url(redirect_uri: str) -> str:
    """Ask for the redirect URL until something plausible is pasted"""
    while True:
        callback_url = input("🔗 Paste the callback URL here: ").strip()

        if not callback_url:
            print("   ❌ Please provide the callback URL")
            continue

        if not callback_url.startswith(("http://", "https://")):
            print("   ❌ URL should start with http:// or https://")
            continue

        # Validate that it contains the expected redirect URI base
        if not callback_url.startswith(redirect_uri.split("?")[0]):
            print(f"   ⚠️ URL doesn't start with expected redirect URI: {redirect_uri}")
            choice = input("   Continue anyway? (y/N): ").strip().lower()
            if choice not in ["y", "yes"]:
                continue

        return callback_url


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Authenticate with the Smartcar API")
    parser.add_argument("--env-file", default=".env", help="environment file to load")
    parser.add_argument(
        "--tokens", default=DEFAULT_TOKEN_PATH, help="where to store the tokens"
    )
    parser.add_argument(
        "--scope",
        nargs="+",
        default=SmartcarConfig.DEFAULT_SCOPES,
        help="permissions to request",
    )
    parser.add_argument(
        "--no-browser", action="store_true", help="do not open a browser"
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main authentication flow"""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("🔐 Smartcar API Authentication Helper")
    print("=" * 50)

    try:
        # Load configuration
        print("📋 Loading configuration...")
        config = SmartcarConfig.from_env(args.env_file)

        missing = config.validate()
        if missing:
            print("❌ Missing required configuration:")
            for field in missing:
                print(f"   - {field}")
            return 1

        print(f"   Client ID: {config.client_id[:10]}...")
        print(f"   Redirect URI: {config.redirect_uri}")
        print(f"   Mode: {'test' if config.test_mode else 'live'}")
        print()

        auth = AuthClient.from_config(config)

        # Check if already authenticated
        existing = load_credential(args.tokens)
        if existing and not is_expired(existing.refresh_expiration):
            print("✅ Stored tokens found and the refresh token is still valid.")
            choice = (
                input("Do you want to re-authenticate anyway? (y/N): ").strip().lower()
            )
            if choice not in ["y", "yes"]:
                print("👋 Keeping existing authentication. Goodbye!")
                return 0
            print("🔄 Proceeding with re-authentication...")
            print()

        # Step 1: Generate authorization URL
        print("🔗 Step 1: Generating authorization URL...")
        auth_url = auth.get_authorization_url(args.scope)
        print(f"   Authorization URL: {auth_url}")
        print()

        # Step 2: Open browser (optional)
        if not args.no_browser:
            try:
                webbrowser.open(auth_url)
                print("   ✅ Browser opened")
            except (OSError, webbrowser.Error) as e:
                print(f"   ⚠️ Could not open browser automatically: {e}")
                print("   Please copy and paste the URL above into your browser.")

        print()
        print("📝 Instructions:")
        print("   1. In your browser, log in and select your vehicle")
        print("   2. Grant permission to your application")
        print("   3. You will be redirected to your redirect URI")
        print("   4. Copy the ENTIRE redirect URL from your browser's address bar")
        print("   5. Paste it below")
        print()

        callback_url = prompt_callback_url(config.redirect_uri)

        # Step 3: Extract authorization code
        print()
        print("🔍 Step 2: Extracting authorization code...")
        code, state = AuthClient.extract_code_from_callback_url(callback_url)
        print(f"   ✅ Authorization code extracted: {code[:20]}...")
        if state:
            print(f"   State parameter: {state}")

        # Step 4: Exchange code for tokens
        print()
        print("🔄 Step 3: Exchanging code for tokens...")
        credential = auth.exchange_code(code)
        print("   ✅ Token exchange successful!")
        print(f"   Access token expires: {credential.expiration.isoformat()}")
        print(f"   Refresh token expires: {credential.refresh_expiration.isoformat()}")

        save_credential(credential, args.tokens)

        # Step 5: Verify authentication
        print()
        print("✅ Step 4: Verifying authentication...")
        user = SmartcarClient(config).get_user(credential.access_token)
        print(f"   ✅ Authenticated as user {user.data.id}")
        print(f"   Tokens have been saved to '{args.tokens}'")
        return 0

    except SmartcarError as e:
        print(f"   ❌ {e}")
        if e.request_id:
            print(f"   Request ID: {e.request_id}")
        return 1

    except KeyboardInterrupt:
        print("\n👋 Authentication cancelled by user")
        return 130

    except (IOError, ValueError) as e:
        print(f"\n❌ Configuration error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
