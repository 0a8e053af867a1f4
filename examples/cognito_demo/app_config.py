from cognito_jwt import AuthExtension, CognitoSettings, CookieExtractor, KeySet

# reads COGNITO_* from the environment / .env
settings = CognitoSettings.from_env()
keyset = KeySet.from_settings(settings)

# configuration for access token verification
access_verifier = keyset.new_access_token_verifier(settings.client_ids).build()
# auth will be the ext imported in the Flask app
auth = AuthExtension(keyset, access_verifier, extractor=CookieExtractor("access_token"))

# configuration for ID token verification, same pool and cache
id_token_verifier = keyset.new_id_token_verifier(settings.client_ids).build()
id_auth = AuthExtension(keyset, id_token_verifier, extractor=CookieExtractor("id_token"))
