import xml.etree.ElementTree as etree

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gwsm.access import set_transport
from gwsm.admin import contacts
from gwsm.admin.contacts import GD, Email, Entry, Feed, Name, Organization, PhoneNumber, Where
from gwsm.errors import GSMAPIError, TransportNotSetError

SELF = "https://www.google.com/m8/feeds/contacts/example.com/full/c1"

ENTRY = f"""
<entry xmlns="http://www.w3.org/2005/Atom" xmlns:gd="http://schemas.google.com/g/2005">
  <id>http://www.google.com/m8/feeds/contacts/example.com/base/c1</id>
  <updated>2024-01-01T00:00:00.000Z</updated>
  <category scheme="http://schemas.google.com/g/2005#kind" term="http://schemas.google.com/contact/2008#contact"/>
  <title>Jane Doe</title>
  <link rel="self" type="application/atom+xml" href="{SELF}"/>
  <link rel="edit" type="application/atom+xml" href="{SELF}/1"/>
  <gd:name>
    <gd:givenName>Jane</gd:givenName>
    <gd:familyName>Doe</gd:familyName>
    <gd:fullName>Jane Doe</gd:fullName>
  </gd:name>
  <gd:email rel="http://schemas.google.com/g/2005#work" address="jane@example.com" primary="true"/>
  <gd:email rel="http://schemas.google.com/g/2005#home" address="jane@home.example"/>
  <gd:phoneNumber rel="http://schemas.google.com/g/2005#work" primary="true">+1 555 0100</gd:phoneNumber>
  <gd:organization rel="http://schemas.google.com/g/2005#work">
    <gd:orgName>Example</gd:orgName>
    <gd:orgTitle>CEO</gd:orgTitle>
  </gd:organization>
  <gd:where valueString="Building 1"/>
</entry>
"""

def feed(entries, next_link=""):
    link = f'<link rel="next" type="application/atom+xml" href="{next_link}"/>' if next_link else ""
    body = "".join(e.replace(' xmlns="http://www.w3.org/2005/Atom" xmlns:gd="http://schemas.google.com/g/2005"', "")
                   for e in entries)
    return f"""<feed xmlns="http://www.w3.org/2005/Atom" xmlns:gd="http://schemas.google.com/g/2005"
                     xmlns:openSearch="http://a9.com/-/spec/opensearch/1.1/">
                 <id>example.com</id>
                 <title>example.com's Contacts</title>
                 {link}
                 <openSearch:totalResults>{len(entries)}</openSearch:totalResults>
                 <openSearch:startIndex>1</openSearch:startIndex>
                 {body}
               </feed>""".encode("utf-8")

class FakeTransport():
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, uri, method="GET", body=None, headers=None, **kwargs):
        self.requests.append((uri, method, body, dict(headers or {})))
        status, content = self.responses.pop(0)
        return httplib2.Response({"status": status}), content

def test_parse_entry():
    e = Entry.from_bytes(ENTRY)
    assert(e)
    assert(e.title == "Jane Doe")
    assert(e.self_link == SELF)
    assert(e.edit_link == SELF + "/1")
    assert(e.name.givenName == "Jane")
    assert(e.name.fullName == "Jane Doe")
    assert([m.address for m in e.email] == ["jane@example.com", "jane@home.example"])
    assert(e.email[0].primary == "true")
    assert(e.phoneNumber[0].phoneNumber == "+1 555 0100")
    assert(e.organization[0].orgTitle == "CEO")
    assert(e.where.valueString == "Building 1")
    assert(str(e) == "Jane Doe<http://www.google.com/m8/feeds/contacts/example.com/base/c1>")

def test_serialize_entry():
    e = Entry(title="John Roe", name=Name(givenName="John", familyName="Roe"),
              email=[Email(address="john@example.com", rel="http://schemas.google.com/g/2005#work")],
              phoneNumber=[PhoneNumber(phoneNumber="123", primary="true")],
              organization=[Organization(orgName="Example")])
    root = etree.fromstring(e.to_bytes())
    assert(root.tag == "{http://www.w3.org/2005/Atom}entry")
    name = root.find(f"{{{GD}}}name")
    assert(name.find(f"{{{GD}}}givenName").text == "John")
    assert(name.find(f"{{{GD}}}fullName") is None)
    assert(root.find(f"{{{GD}}}email").get("address") == "john@example.com")
    assert(root.find(f"{{{GD}}}phoneNumber").text == "123")
    assert(root.find(f"{{{GD}}}where") is None)
    category = root.find("{http://www.w3.org/2005/Atom}category")
    assert(category.get("term") == "http://schemas.google.com/contact/2008#contact")
    assert(not Where())

def test_feed_next_link():
    f = Feed.from_bytes(feed([ENTRY], "https://next.example/page2"))
    assert(f.next_link == "https://next.example/page2")
    assert(f.totalResults == 1)
    assert(len(f.entry) == 1)
    assert(f.entry[0].self_link == SELF)
    assert(Feed.from_bytes(feed([])).next_link == "")

def test_list_follows_next():
    t = FakeTransport((200, feed([ENTRY], "https://next.example/page2")), (200, feed([ENTRY])))
    set_transport(t)
    entries = contacts.list_shared_contacts("example.com")
    assert(len(entries) == 2)
    assert(t.requests[0][0] == "https://www.google.com/m8/feeds/contacts/example.com/full?v=3.0&max-results=1000")
    assert(t.requests[1][0] == "https://next.example/page2")
    for _, method, _, headers in t.requests:
        assert(method == "GET")
        assert(headers["GData-Version"] == "3.0")
        assert("If-Match" not in headers)

def test_create_update_delete():
    t = FakeTransport((201, ENTRY.encode("utf-8")), (200, ENTRY.encode("utf-8")), (200, b""))
    set_transport(t)
    created = contacts.create_shared_contact("example.com", Entry(title="Jane Doe", name=Name(fullName="Jane Doe")))
    assert(created.self_link == SELF)
    uri, method, body, headers = t.requests[0]
    assert(method == "POST")
    assert(uri == "https://www.google.com/m8/feeds/contacts/example.com/full?v=3.0")
    assert(b"Jane Doe" in body)
    assert(headers["Content-Type"] == "application/atom+xml")
    contacts.update_shared_contact(created.self_link, created)
    assert(t.requests[1][1] == "PUT")
    assert(t.requests[1][3]["If-Match"] == "*")
    assert(contacts.delete_shared_contact(created.self_link) is True)
    assert(t.requests[2][:2] == (SELF, "DELETE"))
    assert(t.requests[2][3]["If-Match"] == "*")
    assert(t.requests[2][3]["GData-Version"] == "3.0")

def test_error_status():
    set_transport(FakeTransport((404, b"Contact not found")))
    with pytest.raises(GSMAPIError) as e:
        contacts.get_shared_contact(SELF)
    assert(isinstance(e.value.__cause__, HttpError))
    assert(e.value.status == 404)

def test_no_transport():
    with pytest.raises(GSMAPIError) as e:
        contacts.get_shared_contact(SELF)
    assert(isinstance(e.value.__cause__, TransportNotSetError))
