"""
Lox prelude: library functions written in Lox itself.

Executed into the globals environment before user code when the session's
``prelude`` setting is on.
"""

PRELUDE_SOURCE = """\
fun pow(base, exponent) {
  if (exponent < 0) return 1 / pow(base, -exponent);
  var result = 1;
  while (exponent > 0) {
    result = result * base;
    exponent = exponent - 1;
  }
  return result;
}
"""

PRELUDE_FILENAME = "<prelude>"
