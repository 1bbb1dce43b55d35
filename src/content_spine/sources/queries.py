"""
GraphQL collection queries for the indexed content types.

Every query fetches each localized field twice, aliased per locale
(``title_en: title(locale: $localeEn)``), so one page carries both locales.
"""

from dataclasses import dataclass

SORT_PUBLISHED_DESC = ["sys_publishedAt_DESC"]


@dataclass(frozen=True)
class CollectionQuery:
    """Shape of one content type's collection query."""

    collection: str
    order_type: str
    image_selection: str

    def render(self, *, with_concepts: bool = False) -> str:
        concept_var = "$conceptIds: [String!]" if with_concepts else ""
        concept_filter = (
            "where: { contentfulMetadata: { concepts: { id_contains_some: $conceptIds } } }"
            if with_concepts
            else ""
        )
        return f"""
    query {self.collection}Page(
      $limit: Int = 20
      $skip: Int = 0
      $sortOrder: [{self.order_type}] = [sys_publishedAt_DESC]
      $localeEn: String!
      $localeFr: String!
      {concept_var}
    ) {{
      {self.collection}(
        limit: $limit
        skip: $skip
        order: $sortOrder
        {concept_filter}
      ) {{
        total
        items {{
          sys {{ id }}

          title_en: title(locale: $localeEn)
          title_fr: title(locale: $localeFr)

          slug_en: slug(locale: $localeEn)
          slug_fr: slug(locale: $localeFr)

          description_en: description(locale: $localeEn) {{ json }}
          description_fr: description(locale: $localeFr) {{ json }}

          {self.image_selection}

          contentfulMetadata {{
            concepts {{ id }}
            tags {{ id name }}
          }}
        }}
      }}
    }}
    """


_IMAGE_FIELDS = "{ __typename altText title image { url } }"

SHOWCASE_QUERY = CollectionQuery(
    collection="projectShowcaseCollection",
    order_type="ProjectShowcaseOrder",
    image_selection=f"featuredImage {_IMAGE_FIELDS}",
)

TECH_TIP_QUERY = CollectionQuery(
    collection="techTipsCollection",
    order_type="TechTipsOrder",
    image_selection=f"image: mainImage {_IMAGE_FIELDS}",
)

BUYING_GUIDE_QUERY = CollectionQuery(
    collection="buyingGuideCollection",
    order_type="BuyingGuideOrder",
    image_selection=f"image: mainImage {_IMAGE_FIELDS}",
)
