from __future__ import annotations

# Release host API calls (create release)
GH_TIMEOUT_SECONDS = 60.0

# One asset upload; archives are a few tens of MB
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Deployment endpoint
NOTIFY_TIMEOUT_SECONDS = 30.0

# go vet / go test over the whole tree
GO_CHECK_TIMEOUT_SECONDS = 30 * 60.0

# One cross-compiled build
GO_BUILD_TIMEOUT_SECONDS = 20 * 60.0

# The release host sometimes rejects a release for a tag pushed a moment
# ago ("Published releases must have a valid tag").
PUBLISH_SETTLE_SECONDS = 5.0
