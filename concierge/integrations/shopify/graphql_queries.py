"""
GraphQL query builder for the Shopify Admin API.
"""

from typing import Any, Dict, List, Optional


class GraphQLQueryBuilder:
    """Builder for creating GraphQL queries for Shopify API."""

    def __init__(self):
        self._query_parts: List[str] = []
        self._variables: Dict[str, Any] = {}
        self._variable_types: Dict[str, str] = {}
        self._query_name: Optional[str] = None

    def query(self, name: str = None) -> 'GraphQLQueryBuilder':
        """Start a new query."""
        self._query_name = name
        return self

    def field(self, name: str, **arguments: str) -> 'GraphQLQueryBuilder':
        """Add a field; argument values are written as given, e.g. "$first"."""
        field_str = name
        if arguments:
            args = [f"{key}: {value}" for key, value in arguments.items()]
            field_str += f"({', '.join(args)})"

        self._query_parts.append(field_str)
        return self

    def fields(self, *field_names: str) -> 'GraphQLQueryBuilder':
        """Add multiple fields to the current query."""
        for field_name in field_names:
            self.field(field_name)
        return self

    def nested(self, name: str, **arguments: str) -> 'GraphQLQueryBuilder':
        """Start a nested field block."""
        self.field(name, **arguments)
        self._query_parts.append("{")
        return self

    def end_nested(self) -> 'GraphQLQueryBuilder':
        """End a nested field block."""
        self._query_parts.append("}")
        return self

    def variable(self, name: str, value: Any, type_hint: str) -> 'GraphQLQueryBuilder':
        """Add a variable to the query."""
        self._variables[name] = value
        self._variable_types[name] = type_hint
        return self

    def build(self) -> str:
        """Build the final GraphQL query string."""
        query_str = "query"
        if self._query_name:
            query_str += f" {self._query_name}"

        if self._variables:
            var_declarations = [
                f"${name}: {self._variable_types[name]}" for name in self._variables
            ]
            query_str += f"({', '.join(var_declarations)})"

        query_str += " {\n    "
        query_str += "\n    ".join(self._query_parts)
        query_str += "\n}"
        return query_str

    def get_variables(self) -> Dict[str, Any]:
        """Get the variables dictionary for this query."""
        return self._variables.copy()

    @classmethod
    def get_catalog_products_query(cls,
                                   first: int = 5,
                                   query: Optional[str] = None,
                                   sort_key: Optional[str] = None,
                                   reverse: bool = False) -> tuple[str, Dict[str, Any]]:
        """Query the compact product fields used for catalog lookups."""
        builder = cls()

        builder.query("CatalogProducts")
        builder.variable("first", first, "Int!")
        query_params: Dict[str, Any] = {"first": "$first"}
        if query:
            builder.variable("query", query, "String")
            query_params["query"] = "$query"
        if sort_key:
            builder.variable("sortKey", sort_key, "ProductSortKeys")
            builder.variable("reverse", reverse, "Boolean")
            query_params["sortKey"] = "$sortKey"
            query_params["reverse"] = "$reverse"

        builder.nested("products", **query_params)
        builder.nested("edges").nested("node")
        builder.fields("title", "handle", "productType", "totalInventory")
        builder.nested("priceRange").nested("minVariantPrice")
        builder.fields("amount", "currencyCode")
        builder.end_nested()  # minVariantPrice
        builder.end_nested()  # priceRange
        builder.nested("featuredImage").fields("url").end_nested()
        builder.end_nested()  # node
        builder.end_nested()  # edges
        builder.end_nested()  # products

        return builder.build(), builder.get_variables()


def build_search_filter(keyword: Optional[str]) -> str:
    """Shopify search syntax for active products, optionally matching a title keyword."""
    if not keyword:
        return "status:active"
    words = keyword.replace('"', " ").replace("\\", " ").replace(":", " ").split()
    if not words:
        return "status:active"
    terms = [f"title:*{word}*" for word in words]
    return " AND ".join(terms + ["status:active"])
