"""Example: Make authenticated requests to the OVH API."""

import asyncio

from ovhauth import FileStorage, NotCredentialError, OvhClient


async def main():
    client = OvhClient(
        application_key="YOUR_APPLICATION_KEY",
        application_secret="YOUR_APPLICATION_SECRET",
        storage=FileStorage("~/.config/ovhauth/credentials.json"),
    )

    try:
        me = await client.get("/me")
    except NotCredentialError:
        print("Not logged in, run examples/login.py first")
        await client.close()
        return

    print(f"Logged in as {me['nichandle']}")
    print(f"Name: {me['firstname']} {me['name']}")

    # Path parameters are filled from params
    records = await client.get(
        "/domain/zone/{zoneName}/record",
        params={"zoneName": "example.com", "fieldType": "A"},
    )
    print(f"\nA records: {records}")

    # Unauthenticated schema lookup
    countries = await client.get_models("/me", "nichandle.CountryEnum")
    print(f"Countries: {len(countries['enum'])}")

    await client.logout()
    await client.close()


if __name__ == "__main__":
    asyncio.run(main())
