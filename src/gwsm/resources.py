from dataclasses import asdict, fields, is_dataclass
from typing import List, Self

class GoogleWorkSpaceResourceBase():
    """
    Intended to be subclassed by a dataclass but isnt actually a dataclass.
    Gives the small set of resources gwsm models itself (request bodies,
    config files, shared contacts) a common way to go to and from the raw
    dicts the API client and YAML speak.
    """
    def to_base(self) -> dict:
        """
        Default just return the dict representation of the object.
        Something more complicated can override.
        Call fixup() first to ensure all fields are in correct format.
        """
        self.fixup()
        return asdict(self)

    def trim(self) -> dict:
        """
        Return a 'trimmed' dict of the resource.  That is, removing any top level attributes
        that are an empty or None.  For empty needs to be a string, or container. For None
        needs to be a value like int or bool where 'not' could be a valid value.  This is
        for requests (and files) that only want filled-in fields.
        """
        b = self.to_base()
        if b:
            for k,v in list(b.items()):
                if v is None or (type(v) not in [int,bool,float] and not v):
                    del b[k]
        return b

    def fixup(self) -> None:
        """
        notify a subclass to do any field adjustments
        """
        pass

    @classmethod
    def from_api(cls, response: dict|None) -> Self:
        """
        Build from a raw response, ignoring keys the dataclass doesn't model.
        The API adds fields over time and we don't want that to blow up.
        """
        known = {f.name for f in fields(cls)} if is_dataclass(cls) else set()
        return cls(**{k: v for k, v in dict(response or {}).items() if k in known})

    def update_fields(self, **kwargs) -> List[str]:
        """
        Update fields that may be present.
        """
        updated_fields = []
        if is_dataclass(self):
            names = {f.name for f in fields(self)}
            for k,v in kwargs.items():
                if v is not None and k in names:
                    setattr(self, k, v)
                    updated_fields.append(k)
            self.fixup()
        return updated_fields

def optional(**kwargs) -> dict:
    """
    Keep only the query parameters that were actually given.
    The client drops None but sends empty strings, which the API tends to reject.
    """
    return {k: v for k, v in kwargs.items() if v is not None and v != ""}
