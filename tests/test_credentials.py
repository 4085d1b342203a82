"""Tests for credential plumbing."""

from gitconnector.infra.credentials import (
    CREDENTIAL_HELPER,
    PASSWORD_ENV,
    USERNAME_ENV,
    Credentials,
    mask_credentials,
    strip_credentials,
)


class TestCredentials:
    """Tests for the Credentials value."""

    def test_from_values_none(self):
        assert Credentials.from_values(None, None) is None
        assert Credentials.from_values("", "") is None

    def test_from_values_token_only(self):
        credentials = Credentials.from_values(None, "token")
        assert credentials.username == ""
        assert credentials.password == "token"
        assert credentials.is_set

    def test_env(self):
        credentials = Credentials(username="bob", password="pw")
        assert credentials.env() == {USERNAME_ENV: "bob", PASSWORD_ENV: "pw"}

    def test_git_config_resets_inherited_helpers(self):
        config = Credentials(username="bob", password="pw").git_config()
        assert config == [("credential.helper", ""), ("credential.helper", CREDENTIAL_HELPER)]

    def test_helper_reads_environment_only(self):
        assert "pw" not in CREDENTIAL_HELPER
        assert USERNAME_ENV in CREDENTIAL_HELPER
        assert PASSWORD_ENV in CREDENTIAL_HELPER

    def test_repr_hides_password(self):
        text = repr(Credentials(username="bob", password="hunter2"))
        assert "hunter2" not in text
        assert "bob" in text

    def test_to_dict_masks_password(self):
        assert Credentials(username="bob", password="x").to_dict() == {'username': 'bob', 'password': '***'}
        assert Credentials(username="bob").to_dict()['password'] == ''


class TestMasking:
    """Tests for URL masking helpers."""

    def test_mask_url(self):
        assert mask_credentials("https://u:p@example.com/r.git") == "https://***@example.com/r.git"

    def test_mask_inside_text(self):
        text = "fatal: unable to access 'https://tok@example.com/r.git/'"
        assert "tok" not in mask_credentials(text)

    def test_mask_leaves_plain_url(self):
        assert mask_credentials("https://example.com/r.git") == "https://example.com/r.git"

    def test_mask_leaves_scp_like(self):
        assert mask_credentials("git@example.com:r.git") == "git@example.com:r.git"

    def test_strip(self):
        assert strip_credentials("https://u:p@example.com/r.git") == "https://example.com/r.git"

    def test_strip_non_url(self):
        assert strip_credentials("/srv/repo.git") == "/srv/repo.git"
