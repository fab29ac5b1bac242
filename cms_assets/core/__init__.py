from .assets import AssetManifestBuilder, AssetDownloader, convert_asset_references
from .tree_rewriter import TreeRewriter, rewrite_tree
