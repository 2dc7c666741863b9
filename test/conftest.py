from test.utils.fixtures import client, fake_s3, fake_table, recent_errors, test_tokens  # noqa: F401
