"""
Category Domain Models

Categories form a tree through parent_id; path is slash-delimited and
globally unique ("/clothes", "/clothes/men").
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, List, Optional


class Category(BaseModel):
    id: int
    name: str
    path: str
    image_url: Optional[str] = None
    parent_id: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return not self.parent_id


class CategoryNode(BaseModel):
    id: int
    name: str
    path: str
    image_url: Optional[str] = None
    children: List["CategoryNode"] = []


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    path: str = Field(..., min_length=2, max_length=1024)
    image_url: Optional[str] = None
    parent_id: Optional[int] = Field(None, ge=0)

    @field_validator("path")
    @classmethod
    def path_is_slash_delimited(cls, value: str) -> str:
        if not value.startswith("/") or value.endswith("/") or "//" in value:
            raise ValueError("path must look like /parent/child")
        return value


CategoryNode.model_rebuild()


class AttributeOptionType(str, Enum):
    """How the product form renders an attribute"""
    DROPDOWN = "dropdown"
    RANGE = "range"
    SWITCHER = "switcher"
    TEXT = "text"
    NUMBER = "number"


def validate_options(type_of_option: AttributeOptionType, options: Any) -> Any:
    """
    Check the options payload against the option type

    dropdown -> list of strings, range -> {"from": str, "to": str},
    switcher -> bool, text -> str, number -> int.
    """
    if type_of_option == AttributeOptionType.DROPDOWN:
        valid = isinstance(options, list) and all(isinstance(item, str) for item in options)
    elif type_of_option == AttributeOptionType.RANGE:
        valid = (
            isinstance(options, dict)
            and set(options) == {"from", "to"}
            and all(isinstance(bound, str) for bound in options.values())
        )
    elif type_of_option == AttributeOptionType.SWITCHER:
        valid = isinstance(options, bool)
    elif type_of_option == AttributeOptionType.TEXT:
        valid = isinstance(options, str)
    else:
        valid = isinstance(options, int) and not isinstance(options, bool)

    if not valid:
        raise ValueError(f"invalid value for a {type_of_option.value} attribute")
    return options


class CategoryAttribute(BaseModel):
    """Attribute dictionary entry for a category with the values seen so far"""
    id: int
    name: str
    description: Optional[str] = None
    type_of_option: AttributeOptionType = AttributeOptionType.DROPDOWN
    options: Optional[Any] = None
    values: List[str] = []


class CategoryAttributeInput(BaseModel):
    """Typed attribute definition; the options travel as "value" on the wire"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type_of_option: AttributeOptionType
    options: Any = Field(..., alias="value")

    @model_validator(mode="after")
    def options_match_type(self) -> "CategoryAttributeInput":
        validate_options(self.type_of_option, self.options)
        return self


class CategoryAttributesCreate(BaseModel):
    category_id: int = Field(..., ge=1)
    attributes: List[CategoryAttributeInput] = Field(..., min_length=1)

    @field_validator("attributes")
    @classmethod
    def names_are_unique(cls, attributes: List[CategoryAttributeInput]) -> List[CategoryAttributeInput]:
        names = [attribute.name for attribute in attributes]
        if len(names) != len(set(names)):
            raise ValueError("attribute names must be unique within a request")
        return attributes


class AttributeValueImages(BaseModel):
    id: int
    attribute_value_id: int
    image_urls: List[str]


class AttributeValueImagesCreate(BaseModel):
    attribute_value_id: int = Field(..., ge=1)
    image_urls: List[str] = Field(..., min_length=1)
