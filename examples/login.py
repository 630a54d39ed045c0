"""Example: Get a consumer key and keep it across runs."""

import asyncio

from ovhauth import FileStorage, OvhClient


async def main():
    async with OvhClient(
        application_key="YOUR_APPLICATION_KEY",
        application_secret="YOUR_APPLICATION_SECRET",
        storage=FileStorage("~/.config/ovhauth/credentials.json"),
        location="https://example.com/ovh/callback",
    ) as client:
        if client.is_authenticated():
            print("Already logged in, consumer key restored from storage")
            return

        # Opens the validation page in a browser
        result = await client.login()
        print(f"Credential {result.state}, validate it at {result.validation_url}")
        print("Then run examples/make_request.py")


if __name__ == "__main__":
    asyncio.run(main())
