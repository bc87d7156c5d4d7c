"""
Domain Shared Contacts, the last user of the old GData XML protocol.

Spoken over plain HTTPS with the transport injected into gws:
    list    GET    https://www.google.com/m8/feeds/contacts/<domain>/full?v=3.0&max-results=1000
            (following <link rel="next"/>)
    create  POST   https://www.google.com/m8/feeds/contacts/<domain>/full?v=3.0
    get     GET    <selfLink>
    update  PUT    <selfLink>, If-Match: *
    delete  DELETE <selfLink>, If-Match: *
Every request carries GData-Version: 3.0.
"""

from dataclasses import dataclass, field, fields
from typing import ClassVar, List, Self
import xml.etree.ElementTree as etree

from googleapiclient.errors import HttpError

from ..access import gws
from ..errors import TransportNotSetError, format_error_key
from ..resources import GoogleWorkSpaceResourceBase
from ..retry import run_action, run_value

FEED_URL = "https://www.google.com/m8/feeds/contacts/{domain}/full?v=3.0"
MAX_RESULTS = 1000

ATOM = "http://www.w3.org/2005/Atom"
GD = "http://schemas.google.com/g/2005"
GCONTACT = "http://schemas.google.com/contact/2008"
OPENSEARCH = "http://a9.com/-/spec/opensearch/1.1/"
BATCH = "http://schemas.google.com/gdata/batch"

for _prefix, _uri in (("atom", ATOM), ("gd", GD), ("gContact", GCONTACT),
                      ("openSearch", OPENSEARCH), ("batch", BATCH)):
    etree.register_namespace(_prefix, _uri)

def _local(tag: str) -> str:
    """Tag without its {namespace}, the feed is matched on local names"""
    return tag.rsplit("}", 1)[-1]

def _child(elem: etree.Element, name: str) -> etree.Element|None:
    for c in elem:
        if _local(c.tag) == name:
            return c
    return None

def _children(elem: etree.Element, name: str) -> List[etree.Element]:
    return [c for c in elem if _local(c.tag) == name]

def _text(elem: etree.Element, name: str) -> str:
    c = _child(elem, name)
    return (c.text or "") if c is not None else ""

class XMLElement(GoogleWorkSpaceResourceBase):
    """
    Base for the feed's dataclasses.
    Subclasses declare how their fields map onto the element:
        _ns, _tag:  namespace and local name of the element itself
        _attrs:     field -> attribute name
        _texts:     field -> (namespace, local name) of a simple text child
        _body:      field holding the element's own text
    Anything more involved is handled by overriding to_xml / from_xml.
    """
    _ns: ClassVar[str] = GD
    _tag: ClassVar[str] = ""
    _attrs: ClassVar[dict[str,str]] = {}
    _texts: ClassVar[dict[str,tuple[str,str]]] = {}
    _body: ClassVar[str] = ""

    def to_xml(self, parent: etree.Element|None = None) -> etree.Element:
        tag = f"{{{self._ns}}}{self._tag}"
        elem = etree.Element(tag) if parent is None else etree.SubElement(parent, tag)
        for f, a in self._attrs.items():
            v = getattr(self, f)
            if v:
                elem.set(a, str(v))
        for f, (ns, name) in self._texts.items():
            v = getattr(self, f)
            if v:
                etree.SubElement(elem, f"{{{ns}}}{name}").text = str(v)
        if self._body and getattr(self, self._body):
            elem.text = str(getattr(self, self._body))
        return elem

    @classmethod
    def from_xml(cls, elem: etree.Element) -> Self:
        kwargs = {}
        for f, a in cls._attrs.items():
            kwargs[f] = elem.get(a, "")
        for f, (_, name) in cls._texts.items():
            kwargs[f] = _text(elem, name)
        if cls._body:
            kwargs[cls._body] = (elem.text or "").strip()
        return cls(**kwargs)

@dataclass
class Category(XMLElement):
    _ns = ATOM
    _tag = "category"
    _attrs = {"scheme": "scheme", "term": "term"}
    scheme: str = field(default="http://schemas.google.com/g/2005#kind")
    term: str = field(default="http://schemas.google.com/contact/2008#contact")

@dataclass
class Link(XMLElement):
    _ns = ATOM
    _tag = "link"
    _attrs = {"rel": "rel", "type": "type", "href": "href"}
    rel: str = field(default="")
    type: str = field(default="")
    href: str = field(default="")

@dataclass
class Name(XMLElement):
    _tag = "name"
    _texts = {"givenName": (GD, "givenName"), "additionalName": (GD, "additionalName"),
              "familyName": (GD, "familyName"), "namePrefix": (GD, "namePrefix"),
              "nameSuffix": (GD, "nameSuffix"), "fullName": (GD, "fullName")}
    givenName: str = field(default="")
    additionalName: str = field(default="")
    familyName: str = field(default="")
    namePrefix: str = field(default="")
    nameSuffix: str = field(default="")
    fullName: str = field(default="")

    def __bool__(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))

@dataclass
class PhoneNumber(XMLElement):
    _tag = "phoneNumber"
    _attrs = {"rel": "rel", "primary": "primary", "label": "label", "uri": "uri"}
    _body = "phoneNumber"
    phoneNumber: str = field(default="")
    rel: str = field(default="")
    primary: str = field(default="")
    label: str = field(default="")
    uri: str = field(default="")

@dataclass
class Email(XMLElement):
    _tag = "email"
    _attrs = {"rel": "rel", "primary": "primary", "address": "address",
              "displayName": "displayName", "label": "label"}
    address: str = field(default="")
    rel: str = field(default="")
    primary: str = field(default="")
    displayName: str = field(default="")
    label: str = field(default="")

@dataclass
class Im(XMLElement):
    _tag = "im"
    _attrs = {"rel": "rel", "protocol": "protocol", "address": "address",
              "label": "label", "primary": "primary"}
    address: str = field(default="")
    protocol: str = field(default="")
    rel: str = field(default="")
    label: str = field(default="")
    primary: str = field(default="")

@dataclass
class PostalAddress(XMLElement):
    _tag = "postalAddress"
    _attrs = {"rel": "rel", "primary": "primary"}
    _body = "postalAddress"
    postalAddress: str = field(default="")
    rel: str = field(default="")
    primary: str = field(default="")

@dataclass
class ExtendedProperty(XMLElement):
    _tag = "extendedProperty"
    _attrs = {"name": "name", "value": "value", "realm": "realm"}
    name: str = field(default="")
    value: str = field(default="")
    realm: str = field(default="")

@dataclass
class Organization(XMLElement):
    _tag = "organization"
    _attrs = {"label": "label", "primary": "primary", "rel": "rel"}
    _texts = {"orgDepartment": (GD, "orgDepartment"), "orgJobDescription": (GD, "orgJobDescription"),
              "orgName": (GD, "orgName"), "orgSymbol": (GD, "orgSymbol"),
              "orgTitle": (GD, "orgTitle"), "where": (GD, "where")}
    orgName: str = field(default="")
    orgTitle: str = field(default="")
    orgDepartment: str = field(default="")
    orgJobDescription: str = field(default="")
    orgSymbol: str = field(default="")
    where: str = field(default="")
    label: str = field(default="")
    primary: str = field(default="")
    rel: str = field(default="")

@dataclass
class StructuredPostalAddress(XMLElement):
    _tag = "structuredPostalAddress"
    _attrs = {"mailClass": "mailClass", "label": "label", "usage": "usage", "primary": "primary", "rel": "rel"}
    _texts = {n: (GD, n) for n in ("agent", "housename", "street", "pobox", "neighborhood", "city",
                                    "subregion", "region", "postcode", "country", "formattedAddress")}
    street: str = field(default="")
    city: str = field(default="")
    region: str = field(default="")
    postcode: str = field(default="")
    country: str = field(default="")
    formattedAddress: str = field(default="")
    agent: str = field(default="")
    housename: str = field(default="")
    pobox: str = field(default="")
    neighborhood: str = field(default="")
    subregion: str = field(default="")
    mailClass: str = field(default="")
    label: str = field(default="")
    usage: str = field(default="")
    primary: str = field(default="")
    rel: str = field(default="")

@dataclass
class GeoPt(XMLElement):
    _tag = "geoPt"
    _attrs = {"lat": "lat", "lon": "lon"}
    lat: str = field(default="")
    lon: str = field(default="")

@dataclass
class EntryLinkEntry(XMLElement):
    """The entry embedded in a where/entryLink"""
    _ns = ATOM
    _tag = "entry"
    _texts = {"id": (ATOM, "id"), "content": (ATOM, "content"),
              "postalAddress": (GD, "postalAddress"), "phoneNumber": (GD, "phoneNumber")}
    id: str = field(default="")
    content: str = field(default="")
    postalAddress: str = field(default="")
    phoneNumber: str = field(default="")
    email: str = field(default="")
    category: Category|None = field(default=None)
    link: Link|None = field(default=None)
    geoPt: GeoPt|None = field(default=None)

    def to_xml(self, parent: etree.Element|None = None) -> etree.Element:
        elem = super().to_xml(parent)
        for sub in (self.category, self.link, self.geoPt):
            if sub:
                sub.to_xml(elem)
        if self.email:
            etree.SubElement(elem, f"{{{GD}}}email").set("address", self.email)
        return elem

    @classmethod
    def from_xml(cls, elem: etree.Element) -> Self:
        e = super().from_xml(elem)
        c = _child(elem, "category")
        e.category = Category.from_xml(c) if c is not None else None
        c = _child(elem, "link")
        e.link = Link.from_xml(c) if c is not None else None
        c = _child(elem, "geoPt")
        e.geoPt = GeoPt.from_xml(c) if c is not None else None
        c = _child(elem, "email")
        e.email = c.get("address", "") if c is not None else ""
        return e

@dataclass
class Where(XMLElement):
    _tag = "where"
    _attrs = {"rel": "rel", "valueString": "valueString"}
    valueString: str = field(default="")
    rel: str = field(default="")
    entryLinkHref: str = field(default="")
    entryLink: EntryLinkEntry|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.valueString or self.rel or self.entryLinkHref or self.entryLink)

    def to_xml(self, parent: etree.Element|None = None) -> etree.Element:
        elem = super().to_xml(parent)
        if self.entryLinkHref or self.entryLink:
            el = etree.SubElement(elem, f"{{{GD}}}entryLink")
            if self.entryLinkHref:
                el.set("href", self.entryLinkHref)
            if self.entryLink:
                self.entryLink.to_xml(el)
        return elem

    @classmethod
    def from_xml(cls, elem: etree.Element) -> Self:
        w = super().from_xml(elem)
        el = _child(elem, "entryLink")
        if el is not None:
            w.entryLinkHref = el.get("href", "")
            inner = _child(el, "entry")
            w.entryLink = EntryLinkEntry.from_xml(inner) if inner is not None else None
        return w

@dataclass
class Entry(XMLElement):
    """
    A single shared contact.
    Repeated elements are lists; links carry the selfLink / editLink used
    to get, update and delete the contact.
    """
    _ns = ATOM
    _tag = "entry"
    _texts = {"id": (ATOM, "id"), "updated": (ATOM, "updated"), "content": (ATOM, "content")}
    id: str = field(default="")
    updated: str = field(default="")
    title: str = field(default="")
    content: str = field(default="")
    category: Category = field(default_factory=Category)
    name: Name = field(default_factory=Name)
    where: Where = field(default_factory=Where)
    link: List[Link] = field(default_factory=list)
    email: List[Email] = field(default_factory=list)
    im: List[Im] = field(default_factory=list)
    phoneNumber: List[PhoneNumber] = field(default_factory=list)
    postalAddress: List[PostalAddress] = field(default_factory=list)
    structuredPostalAddress: List[StructuredPostalAddress] = field(default_factory=list)
    organization: List[Organization] = field(default_factory=list)
    extendedProperty: List[ExtendedProperty] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.name.fullName or self.title}<{self.id}>"
        return "<empty>"

    def _link(self, rel: str) -> str:
        for l in self.link:
            if l.rel == rel:
                return l.href
        return ""

    @property
    def self_link(self) -> str:
        return self._link("self")

    @property
    def edit_link(self) -> str:
        return self._link("edit")

    def to_xml(self, parent: etree.Element|None = None) -> etree.Element:
        elem = super().to_xml(parent)
        self.category.to_xml(elem)
        if self.title:
            t = etree.SubElement(elem, f"{{{ATOM}}}title")
            t.set("type", "text")
            t.text = self.title
        if self.name:
            self.name.to_xml(elem)
        for key, _ in _REPEATED:
            for item in getattr(self, key):
                item.to_xml(elem)
        if self.where:
            self.where.to_xml(elem)
        return elem

    @classmethod
    def from_xml(cls, elem: etree.Element) -> Self:
        e = super().from_xml(elem)
        e.title = _text(elem, "title")
        c = _child(elem, "category")
        if c is not None:
            e.category = Category.from_xml(c)
        c = _child(elem, "name")
        if c is not None:
            e.name = Name.from_xml(c)
        c = _child(elem, "where")
        if c is not None:
            e.where = Where.from_xml(c)
        for key, kind in _REPEATED:
            setattr(e, key, [kind.from_xml(x) for x in _children(elem, kind._tag)])
        return e

    def to_bytes(self) -> bytes:
        return etree.tostring(self.to_xml(), encoding="utf-8", xml_declaration=True)

    @classmethod
    def from_bytes(cls, content: bytes|str) -> Self:
        return cls.from_xml(etree.fromstring(content))

_REPEATED = (("link", Link), ("email", Email), ("im", Im), ("phoneNumber", PhoneNumber),
             ("postalAddress", PostalAddress), ("structuredPostalAddress", StructuredPostalAddress),
             ("organization", Organization), ("extendedProperty", ExtendedProperty))

@dataclass
class Feed():
    """One page of the contacts feed"""
    id: str = field(default="")
    updated: str = field(default="")
    title: str = field(default="")
    totalResults: int = field(default=0)
    startIndex: int = field(default=0)
    itemsPerPage: int = field(default=0)
    link: List[Link] = field(default_factory=list)
    entry: List[Entry] = field(default_factory=list)

    @property
    def next_link(self) -> str:
        for l in self.link:
            if l.rel == "next":
                return l.href
        return ""

    @classmethod
    def from_bytes(cls, content: bytes|str) -> Self:
        root = etree.fromstring(content)
        def _int(name):
            v = _text(root, name)
            return int(v) if v.strip().isdigit() else 0
        return cls(id=_text(root, "id"), updated=_text(root, "updated"), title=_text(root, "title"),
                   totalResults=_int("totalResults"), startIndex=_int("startIndex"),
                   itemsPerPage=_int("itemsPerPage"),
                   link=[Link.from_xml(x) for x in _children(root, "link")],
                   entry=[Entry.from_xml(x) for x in _children(root, "entry")])

def _request(url: str, method: str = "GET", body: bytes|None = None, if_match: bool = False) -> bytes:
    """
    Send one request with the injected transport.
    Error responses are raised as HttpError so the retrier classifies them
    like any other API error.
    """
    transport = gws.transport
    if transport is None:
        raise TransportNotSetError("no transport set for shared contacts, call gws.set_transport() first")
    headers = {"GData-Version": "3.0"}
    if if_match:
        headers["If-Match"] = "*"
    if body is not None:
        headers["Content-Type"] = "application/atom+xml"
    resp, content = transport.request(url, method=method, body=body, headers=headers)
    if int(resp.status) >= 400:
        raise HttpError(resp, content, uri=url)
    return content

def list_shared_contacts(domain: str) -> List[Entry]:
    """
    All shared contacts of the domain, following the feed's next links.
    """
    url = FEED_URL.format(domain=domain) + f"&max-results={MAX_RESULTS}"
    entries = []
    while url:
        content = run_value(format_error_key(domain, url), lambda: _request(url))
        feed = Feed.from_bytes(content)
        entries.extend(feed.entry)
        url = feed.next_link
    return entries

def create_shared_contact(domain: str, contact: Entry) -> Entry:
    body = contact.to_bytes()
    content = run_value(format_error_key(domain, contact.name.fullName),
                        lambda: _request(FEED_URL.format(domain=domain), "POST", body))
    return Entry.from_bytes(content)

def get_shared_contact(url: str) -> Entry:
    content = run_value(format_error_key(url), lambda: _request(url))
    return Entry.from_bytes(content)

def update_shared_contact(url: str, contact: Entry) -> Entry:
    body = contact.to_bytes()
    content = run_value(format_error_key(url), lambda: _request(url, "PUT", body, if_match=True))
    return Entry.from_bytes(content)

def delete_shared_contact(url: str) -> bool:
    return run_action(format_error_key(url), lambda: _request(url, "DELETE", if_match=True))
