"""Root field resolvers, assembled into the schema by :mod:`quill_gql.schema`."""
