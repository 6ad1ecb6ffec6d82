# Services package.
#
#   article_service : lifecycle orchestration for Article (reads, create,
#                      update, bulk delete)
#   heading_service : reconciles an article's stored headings
#   file_service    : persists referenced uploads, deletes attached files
#   content_service : renders markdown and caches the HTML
#   transaction     : commit/rollback boundary with compensation hooks
#
# Service functions take an AsyncSession as their first argument. Reads
# leave the transaction to the ``get_db`` dependency; writes open their own
# ``Transaction`` so side effects outside the database can be tied to
# commit or rollback.
