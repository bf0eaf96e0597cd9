# tilestitch

`tilestitch` is a library for rebuilding full-size pictures from zoomable
images. Viewers for large images cut them into many small tiles and serve
them at several zoom levels. This library reads the description of such an
image, works out the URL of every tile and the place where it belongs, and
writes decoded tiles back together into a single image file.

## What it does not do

`tilestitch` fetches nothing over the network and has no command-line
program. The caller downloads every document and tile and passes the bytes
in. `tilestitch.arguments.parse_arguments` turns command-line style options
into an `Arguments` object. The options about networking (parallelism,
retries, timeouts, headers, tile cache) are parsed and stored, and nothing in
the package acts on them.

## Dezoomers

A *dezoomer* recognises one format. Call `zoom_levels` with a
`tilestitch.dezoomer.DezoomerInput`, which holds a URI and its contents:
`None` when not yet downloaded, the bytes, or the exception the download
raised. The call returns a list of zoom levels. If the dezoomer first needs
another document, it raises `tilestitch.errors.NeedsData`, whose `uri`
attribute holds that document's URI. If the input is in a format it does not
handle, it raises `WrongDezoomer`.

- `tilestitch.dzi.DziDezoomer` (`"deepzoom"`) reads Deep Zoom Images: `.dzi`
  XML files (a byte order mark is allowed), their JSON form, and DZI objects
  embedded in JavaScript such as OpenSeadragon configurations. A tile URL such
  as `.../name_files/12/3_4.jpg` asks for `.../name.dzi`.
  `tilestitch.dzi.load_from_properties` parses a document directly.
- `tilestitch.custom_yaml.CustomDezoomer` (`"custom"`) reads URIs ending in
  `tiles.yaml`. The file describes tile URLs with a template and integer
  variables (`tilestitch.variables`, `tilestitch.tile_set`).
- `tilestitch.generic.GenericDezoomer` (`"generic"`) takes a URL template such
  as `http://example.com/map_{{X}}_{{Y}}.jpg`, or `{{x:03}}` for zero padding.
  It finds the image's extent by a binary search over which tiles exist
  (`tilestitch.dichotomy`).
- `tilestitch.auto.AutoDezoomer` (`"auto"`) tries all of the above and
  collects the zoom levels of those that succeed. When none succeeds it raises
  `AutoDezoomerError`, which lists every error.
  `tilestitch.auto.all_dezoomers(include_generic)` returns fresh instances of
  the dezoomers.

### A `tiles.yaml` example

```yaml
variables:
  - name: x
    from: 0
    to: 1
  - name: y
    from: 0
    to: 1
  - name: tile_size
    value: 100
url_template: "http://example.com/tiles/{{x*tile_size}}/{{y*tile_size:04}}.jpg"
```

Expressions may use integers, variables, parentheses, unary signs and
`+ - * / %`. Division truncates towards zero. Every combination of variable
values gives one tile. Its position comes from `x_template` and
`y_template`, which default to `x` and `y`. The optional keys are `headers`
(the default holds only a `User-Agent`), `title`, `width` and `height`.

### Google Arts & Culture helpers

No dezoomer exists for this site, and `AutoDezoomer` does not try it. Two
modules give the pieces:

- `tilestitch.gap_page.PageInfo.parse` extracts the base URL, token and name
  from an artwork page. `tile_info_url()` gives the URL of the tile pyramid
  description, which `TileInfo.from_xml` parses.
- `tilestitch.gap_decryption.decrypt` decrypts a downloaded tile. Data
  without the encryption marker comes back unchanged.

## Zoom levels

Every zoom level is a `tilestitch.dezoomer.TileProvider`. Tiles come in
batches. Ask for a batch with `next_tiles(previous)`, fetch the tiles, report
the outcome as a `TileFetchResult`, and repeat until the batch comes back
empty. `tilestitch.dezoomer.ZoomLevelIter` keeps track of this exchange.
Levels whose size is known in advance (`TilesRect`) return all their tiles in
the first batch.

```python
from tilestitch.dzi import load_from_properties

contents = b"""
<Image TileSize="256" Overlap="2" Format="jpg">
  <Size Width="600" Height="300"/>
</Image>
"""
levels = load_from_properties("http://example.com/images/test.dzi", contents)
largest = levels[0]
print(largest.size_hint())          # 600x300
for tile in largest.next_tiles(None):
    print(tile.position, tile.url)  # .../test_files/10/0_0.jpg, ...
```

`Arguments.best_size(sizes)` picks a level size. With `largest` set it takes
the largest area. With `max_width` or `max_height` set it takes the largest
size within those limits.

## Assembling the image

Wrap each decoded tile as a `tilestitch.encoding.Tile`, which pairs a Pillow
image with a position, and hand it to a `tilestitch.tile_buffer.TileBuffer`.
The buffer holds tiles until `set_size` is called. `finalize` takes the
bounding box of the buffered tiles as the size if none was set. Encoding
runs in a worker thread, and encoder errors are raised from `finalize` as a
`ZoomError`.

```python
from tilestitch.dezoomer import Vec2d
from tilestitch.tile_buffer import TileBuffer

buffer = TileBuffer("out.png", compression=20)
buffer.set_size(Vec2d(600, 300))
for tile in decoded_tiles:
    buffer.add_tile(tile)
buffer.finalize()
```

`tilestitch.tile_buffer.encoder_for_name` uses the destination's extension
to choose the encoder:

- `.png`: `tilestitch.png_encoder.PngEncoder` writes an 8-bit RGB PNG row by
  row, using `tilestitch.pixel_streamer.PixelStreamer`. Only unfinished rows
  stay in memory, and missing areas come out black.
- `.jpg` / `.jpeg`: `tilestitch.canvas.Canvas` collects the tiles in memory
  and saves them as JPEG.
- `.iiif`: `tilestitch.iiif_encoder.IiifEncoder` creates a directory of
  512×512 JPEG tiles at every scale, laid out as a static IIIF level 0
  service, and writes an `info.json` file. `tilestitch.retiler.Retiler` does
  the cutting.
- Any other extension: a `Canvas` saved by Pillow in the format that the
  extension names.

The compression setting runs from 0 to 100. 0 means the least compression and
100 the most. The JPEG quality is `100 - compression`, clamped to 1–100. For
PNG the setting selects the zlib level and strategy
(`png_compression_level`).

## Options

```python
from tilestitch.arguments import parse_arguments, parse_duration, parse_header

args = parse_arguments(["--largest", "-H", "Referer: http://example.com/viewer",
                        "http://example.com/image.dzi", "out.png"])
parse_header("Referer: http://example.com/viewer")  # ("Referer", "http://example.com/viewer")
parse_duration("1500 ms")                           # 1.5 (seconds); units: min, s, ms, ns
```

`Arguments.find_dezoomer()` returns the dezoomer whose name is given by
`--dezoomer` and raises `NoSuchDezoomer` if there is none. When no input URI
was given, `choose_input_uri()` reads one line from standard input.

## Errors

All errors the package raises are exceptions from `tilestitch.errors`.
`ZoomError` is their base class. Dezoomer failures derive from
`DezoomerError`, for example `NeedsData`, `WrongDezoomer`, `DownloadError`
and `tilestitch.dzi.DziError`. Parsing helpers raise `ValueError`
subclasses: `BadVariableError`, `UrlTemplateError`, `PageParseError` and
`InvalidEncryptedImage`.

## Running the tests

Install the `test` extra, then run `pytest` on the `tests` directory.