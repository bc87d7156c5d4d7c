import pytest

from gwsm import access, calendar, licensing, sheets
from gwsm.access import set_transport
from gwsm.admin import members, orgunits, users
from gwsm.drive import files
from gwsm.drive.files import DriveFile
from gwsm.errors import GSMAPIError

class FakeRequest():
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.response

class FakeCollection():
    """
    Stands in for a generated resource collection (e.g. service.users()).
    Every method call is recorded; responses maps a method name to a
    response, a list of paged responses or an exception.
    """
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __getattr__(self, method):
        def call(**kwargs):
            self.calls.append((method, kwargs))
            r = self.responses.get(method, {})
            if isinstance(r, Exception):
                return FakeRequest(error=r)
            if isinstance(r, list):
                return FakeRequest(r[int(kwargs.get("pageToken") or 0)])
            return FakeRequest(r)
        return call

class FakeSpreadsheets(FakeCollection):
    def __init__(self, values):
        super().__init__({})
        self._values = values

    def values(self):
        return self._values

class FakeService():
    def __init__(self, **collections):
        self.collections = collections

    def __getattr__(self, name):
        return lambda: self.collections[name]

@pytest.fixture
def service(monkeypatch):
    """Registry building the FakeService that's filled in by the test"""
    svc = FakeService()
    monkeypatch.setattr(access, "build", lambda name, version, **kwargs: svc)
    set_transport(object())
    return svc

def test_users_list(service):
    col = FakeCollection({"list": [{"users": [{"primaryEmail": "a@example.com"}], "nextPageToken": "1"},
                                   {"users": [{"primaryEmail": "b@example.com"}]}]})
    service.collections["users"] = col
    got = users.list(query="isSuspended=false", domain="example.com", showDeleted=True).list()
    assert([u["primaryEmail"] for u in got] == ["a@example.com", "b@example.com"])
    method, kwargs = col.calls[0]
    assert(method == "list")
    assert(kwargs == {"pageToken": None, "maxResults": 500, "query": "isSuspended=false",
                      "domain": "example.com", "showDeleted": "true"})
    assert(col.calls[1][1]["pageToken"] == "1")

def test_users_list_customer(service):
    col = FakeCollection({"list": [{}]})
    service.collections["users"] = col
    assert(users.list().list() == [])
    assert(col.calls[0][1]["customer"] == "my_customer")
    assert("domain" not in col.calls[0][1])

def test_users_errors(service, http_error):
    service.collections["users"] = FakeCollection({"get": http_error(404, "Resource Not Found: userKey"),
                                                   "delete": {}})
    with pytest.raises(GSMAPIError) as e:
        users.get("nobody@example.com")
    assert(str(e.value).startswith("nobody@example.com: "))
    assert(users.delete("somebody@example.com") is True)

def test_make_user_body():
    body = users.make_user_body(primaryEmail="a@example.com", givenName="A", suspended=False)
    assert(body == {"primaryEmail": "a@example.com", "suspended": False, "name": {"givenName": "A"}})
    with pytest.raises(ValueError):
        users.make_user_body(hashFunction="bcrypt")

def test_members(service):
    col = FakeCollection({"list": [{"members": [{"email": "a@example.com", "type": "USER"}]}],
                          "hasMember": {"isMember": True},
                          "insert": {"email": "a@example.com"}})
    service.collections["members"] = col
    got = members.list("g@example.com", includeDerivedMembership=True).list()
    assert(got == [{"email": "a@example.com", "type": "USER"}])
    assert(col.calls[0][1]["includeDerivedMembership"] is True)
    assert(col.calls[0][1]["groupKey"] == "g@example.com")
    assert(members.has_member("g@example.com", "a@example.com"))
    members.insert("g@example.com", {"email": "a@example.com"})
    assert(col.calls[-1] == ("insert", {"groupKey": "g@example.com", "body": {"email": "a@example.com"}}))

def test_orgunits(service):
    col = FakeCollection({"get": {"orgUnitPath": "/Sales"},
                          "list": {"organizationUnits": [{"orgUnitPath": "/Sales"}]}})
    service.collections["orgunits"] = col
    orgunits.get("/Sales")
    assert(col.calls[0][1]["orgUnitPath"] == "Sales")
    assert(orgunits.list(type="all") == [{"orgUnitPath": "/Sales"}])
    with pytest.raises(ValueError):
        orgunits.list(type="everything")

def test_drive_files(service):
    col = FakeCollection({"update": {"id": "f1", "parents": ["new"]},
                          "list": [{"files": [{"id": "f1", "name": "one", "mimeType": "text/plain"}]}],
                          "create": {"id": "d1", "name": "folder"}})
    service.collections["files"] = col
    f = files.update("f1", addParents="new", removeParents="old", fields="id,parents")
    assert(f == DriveFile(id="f1", parents=["new"]))
    assert(col.calls[0][1] == {"fileId": "f1", "body": {}, "supportsAllDrives": True,
                               "addParents": "new", "removeParents": "old", "fields": "id,parents"})
    got = files.list(q="'x' in parents").list()
    assert(got[0].name == "one")
    assert(col.calls[1][1]["includeItemsFromAllDrives"] is True)
    created = files.create(DriveFile.folder("folder", "root"))
    assert(created.id == "d1")
    assert(col.calls[2][1]["body"] == {"name": "folder", "mimeType": files.FOLDER_MIMETYPE, "parents": ["root"]})
    with pytest.raises(ValueError):
        files.list(corpora="everything")

def test_calendar(service):
    col = FakeCollection({"list": [{"items": [{"id": "e1"}]}], "delete": {}})
    service.collections["events"] = col
    got = calendar.list_events("primary", timeMin="2024-01-01T09:00:00", timeZone="Europe/Berlin").list()
    assert(got == [{"id": "e1"}])
    kwargs = col.calls[0][1]
    assert(kwargs["timeMin"] == "2024-01-01T09:00:00+01:00")
    assert(kwargs["timeZone"] == "Europe/Berlin")
    assert(calendar.delete_event("primary", "e1"))
    with pytest.raises(ValueError):
        calendar.delete_event("primary", "e1", sendUpdates="some")

def test_sheets_and_licensing(service):
    values = FakeCollection({"get": {"values": [["a", "b"]]}, "append": {"updates": {}}})
    service.collections["spreadsheets"] = FakeSpreadsheets(values)
    assert(sheets.get_values("s1", "Sheet1!A1:B1") == [["a", "b"]])
    sheets.append_values("s1", "Sheet1!A1", [["c", "d"]])
    assert(values.calls[-1][1]["body"] == {"values": [["c", "d"]]})
    with pytest.raises(ValueError):
        sheets.update_values("s1", "A1", [["x"]], valueInputOption="PARSED")
    assignments = FakeCollection({"listForProduct": [{"items": [{"userId": "a@example.com"}]}]})
    service.collections["licenseAssignments"] = assignments
    got = licensing.list_for_product("Google-Apps", "example.com").list()
    assert(got == [{"userId": "a@example.com"}])
