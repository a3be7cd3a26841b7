from core.models import CloudRecord, DirectoryRecord
from reconcilers.field_resolution import first_non_empty, merge_records


class TestFirstNonEmpty:

    def test_prefers_first_value(self):
        assert first_non_empty("Sales", "Marketing") == "Sales"

    def test_skips_blank_and_none(self):
        assert first_non_empty("", "  ", None, "Engineer") == "Engineer"

    def test_all_empty(self):
        assert first_non_empty(None, "") == ""


class TestMergeRecords:

    def test_directory_with_cloud_fallback(self, jdoe_directory, jdoe_cloud):
        merged = merge_records(jdoe_directory, jdoe_cloud)

        assert merged.username == "jdoe"
        assert merged.display_name == "John Doe"
        assert merged.department == "Sales"
        assert merged.title == "Engineer"
        assert merged.email == "jdoe@contoso.com"
        assert merged.in_ad == "Yes"
        assert merged.in_entra == "Yes"
        assert merged.ad_enabled == "Enabled"
        assert merged.entra_enabled == "Enabled"
        assert merged.ad_created == "2019-03-15"
        assert merged.entra_created == "2019-03-16"
        assert merged.entra_last_interactive_sign_in == "2024-05-01"
        assert merged.entra_last_non_interactive_sign_in == "2024-05-02"

    def test_directory_only(self, asmith_directory):
        merged = merge_records(asmith_directory)

        assert merged.in_ad == "Yes"
        assert merged.in_entra == "No"
        assert merged.entra_enabled == "Disabled"
        assert merged.entra_created == ""
        assert merged.entra_last_interactive_sign_in == ""
        assert merged.entra_last_non_interactive_sign_in == ""
        assert merged.department == "Finance"

    def test_directory_value_wins(self, jdoe_cloud):
        directory = DirectoryRecord(username="jdoe", department="Support", title="Lead")
        merged = merge_records(directory, jdoe_cloud)

        assert merged.department == "Support"
        assert merged.title == "Lead"

    def test_disabled_accounts(self):
        directory = DirectoryRecord(username="old", enabled=False)
        cloud = CloudRecord(username="old", enabled=False)
        merged = merge_records(directory, cloud)

        assert merged.ad_enabled == "Disabled"
        assert merged.entra_enabled == "Disabled"
        assert merged.in_entra == "Yes"

    def test_directory_only_fields_pass_through(self, jdoe_directory, jdoe_cloud):
        merged = merge_records(jdoe_directory, jdoe_cloud)

        assert merged.ad_description == "Sales engineer"
        assert merged.ad_distinguished_name == "CN=John Doe,OU=Users,DC=contoso,DC=com"

    def test_malformed_timestamps_become_empty(self):
        directory = DirectoryRecord(
            username="broken",
            when_created="garbage",
            when_changed="",
            pwd_last_set=0,
        )
        cloud = CloudRecord(username="broken", created="not-a-date")
        merged = merge_records(directory, cloud)

        assert merged.ad_created == ""
        assert merged.ad_when_changed == ""
        assert merged.ad_pwd_last_set == ""
        assert merged.entra_created == ""

    def test_partial_timestamps_are_not_completed(self):
        directory = DirectoryRecord(username="partial", when_created="May", when_changed="12:30")
        cloud = CloudRecord(username="partial", created="Tuesday", last_interactive_sign_in="5")
        merged = merge_records(directory, cloud)

        assert merged.ad_created == ""
        assert merged.ad_when_changed == ""
        assert merged.entra_created == ""
        assert merged.entra_last_interactive_sign_in == ""

    def test_blank_directory_value_falls_back_to_cloud(self, jdoe_cloud):
        directory = DirectoryRecord(username="jdoe", department="   ", title="\t")
        merged = merge_records(directory, jdoe_cloud)

        assert merged.department == "Sales"
        assert merged.title == "Engineer"

    def test_pwd_last_set_filetime(self):
        directory = DirectoryRecord(username="pw", pwd_last_set=132539328000000000)
        assert merge_records(directory).ad_pwd_last_set == "2021-01-01"

    def test_merge_is_deterministic(self, jdoe_directory, jdoe_cloud):
        assert merge_records(jdoe_directory, jdoe_cloud) == merge_records(jdoe_directory, jdoe_cloud)

    def test_non_latin_text_preserved(self):
        directory = DirectoryRecord(username="tyamada", display_name="山田 太郎")
        cloud = CloudRecord(username="tyamada", department="Ventes à l'étranger")
        merged = merge_records(directory, cloud)

        assert merged.display_name == "山田 太郎"
        assert merged.department == "Ventes à l'étranger"
