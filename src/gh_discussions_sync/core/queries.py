"""GraphQL documents for the GitHub Discussions API."""

DISCUSSION_FIELDS = """
fragment DiscussionFields on Discussion {
  id
  number
  title
  body
  createdAt
  updatedAt
  url
  locked
  upvoteCount
  answerChosenAt
  author { login avatarUrl }
  category { id name emoji description isAnswerable }
  comments { totalCount }
}
"""

GET_VIEWER = """
query GetViewer {
  viewer { login }
}
"""

GET_REPOSITORY = """
query GetRepository($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    id
    name
    owner { login }
    discussionCategories(first: 100) {
      nodes { id name emoji description isAnswerable }
    }
  }
}
"""

GET_DISCUSSIONS = (
    """
query GetDiscussions($owner: String!, $name: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $name) {
    discussions(first: $first, after: $after, orderBy: {field: UPDATED_AT, direction: DESC}) {
      totalCount
      pageInfo { hasNextPage endCursor }
      nodes { ...DiscussionFields }
    }
  }
}
"""
    + DISCUSSION_FIELDS
)

GET_DISCUSSION = (
    """
query GetDiscussion($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    discussion(number: $number) { ...DiscussionFields }
  }
}
"""
    + DISCUSSION_FIELDS
)

UPDATE_DISCUSSION = (
    """
mutation UpdateDiscussion($input: UpdateDiscussionInput!) {
  updateDiscussion(input: $input) {
    discussion { ...DiscussionFields }
  }
}
"""
    + DISCUSSION_FIELDS
)

CREATE_DISCUSSION = (
    """
mutation CreateDiscussion($input: CreateDiscussionInput!) {
  createDiscussion(input: $input) {
    discussion { ...DiscussionFields }
  }
}
"""
    + DISCUSSION_FIELDS
)

ADD_DISCUSSION_COMMENT = """
mutation AddDiscussionComment($input: AddDiscussionCommentInput!) {
  addDiscussionComment(input: $input) {
    comment {
      id
      body
      url
      createdAt
      author { login avatarUrl }
    }
  }
}
"""
