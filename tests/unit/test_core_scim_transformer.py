from scim_compat.core.models import Group
from scim_compat.core.schema import SCIM_GROUP_SCHEMA
from scim_compat.core.scim_transformer import SCIM_LIST_RESPONSE_SCHEMA, ScimTransformer


def test_group_to_scim_minimal():
    scim_group = ScimTransformer.group_to_scim(Group(group_id="g1", group_name="engineering"))
    assert scim_group["schemas"] == [SCIM_GROUP_SCHEMA]
    assert scim_group["id"] == "g1"
    assert scim_group["displayName"] == "engineering"
    assert scim_group["meta"] == {"resourceType": "Group", "location": "/scim/v2/Groups/g1"}


def test_group_to_scim_keeps_domain_and_metadata():
    group = Group(
        group_id="g-ops",
        group_name="SECONDARY/ops",
        display_name="ops",
        created_date="2022-02-02T00:00:00Z",
        last_modified_date="2022-03-03T00:00:00Z",
        location="https://scim.example/scim/v2/Groups/g-ops",
    )
    scim_group = ScimTransformer.group_to_scim(group, base_url="https://other/scim/v2")
    assert scim_group["displayName"] == "SECONDARY/ops"
    assert scim_group["meta"]["location"] == "https://scim.example/scim/v2/Groups/g-ops"
    assert scim_group["meta"]["created"] == "2022-02-02T00:00:00Z"
    assert scim_group["meta"]["lastModified"] == "2022-03-03T00:00:00Z"


def test_group_without_name_falls_back_to_display_name():
    scim_group = ScimTransformer.group_to_scim(Group(group_id="g1", display_name="eng"), base_url="https://api/scim/v2/")
    assert scim_group["displayName"] == "eng"
    assert scim_group["meta"]["location"] == "https://api/scim/v2/Groups/g1"


def test_list_response():
    response = ScimTransformer.list_response([{"id": "a"}, {"id": "b"}], start_index=3, total_results=10)
    assert response == {
        "schemas": [SCIM_LIST_RESPONSE_SCHEMA],
        "totalResults": 10,
        "startIndex": 3,
        "itemsPerPage": 2,
        "Resources": [{"id": "a"}, {"id": "b"}],
    }


def test_list_response_defaults_total_to_page_size():
    assert ScimTransformer.list_response([])["totalResults"] == 0
